from drupal_artifact_builder.main import main

main()
