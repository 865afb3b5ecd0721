"""Deployment .gitignore written at the artifact root."""
from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

GITIGNORE_TEMPLATE = """\
# Ignore sensitive information.
/{docroot}/sites/*/settings.local.php
# Ignore local drush settings
/{docroot}/sites/*/local.drush.yml
# Ignore paths that contain user-generated content.
/{docroot}/sites/*/files
/private-files/*
# OS X files.
.DS_STORE
.Ds_Store
.DS_Store
# Linux files.
.directory
# IDE related directories.
/nbproject/private/
.idea
# Database and compressed files.
*.mysql
*.sql
*.gz
*.zip
*.rar
*.7z
# NPM.
node_modules/
.sass-cache
.cache
# Test related Reports.
/reports/behat/errors/*
/reports/behat/junit/*
/reports/codereview/*
/{docroot}/sites/default/settings.local.unmanaged.php
# BackstopJS
/tests/backstopjs/backstop_data/html_report
/tests/backstopjs/backstop_data/bitmaps_test
# Temporary files
/tmp/*
# Ignore docker-compose env specific settings.
/docker-compose.override.yml
# Ensure .gitkeep files are commited so folder structure get respected.
!.gitkeep
# Ignore editor config files.
/.editorconfig
/.gitattributes
"""


def render_gitignore(docroot: str) -> str:
    """Render the deployment .gitignore for ``docroot``."""
    return GITIGNORE_TEMPLATE.format(docroot=docroot)


def write_gitignore(artifact_dir: Path, docroot: str) -> Path:
    """Write the deployment .gitignore, replacing any copied one."""
    path = artifact_dir / ".gitignore"
    path.write_text(render_gitignore(docroot), encoding="utf-8")
    logger.info("Generated .gitignore")
    return path
