"""Utility functions for project file generation."""
import json
import re
from typing import Any


def to_package_name(project_name: str) -> str:
    """Convert a display name to an npm-style package name."""
    slug = re.sub(r'\s+', '-', project_name.strip().lower())
    slug = re.sub(r'[^a-z0-9._-]', '', slug)
    return slug.strip('-._') or "my-app"


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2)


def guess_language(path: str) -> str | None:
    """Map a file extension to an editor language hint."""
    ext_map = {
        ".ts": "typescript",
        ".tsx": "typescript",
        ".js": "javascript",
        ".jsx": "javascript",
        ".mjs": "javascript",
        ".json": "json",
        ".css": "css",
        ".scss": "scss",
        ".html": "html",
        ".md": "markdown",
        ".py": "python",
        ".yml": "yaml",
        ".yaml": "yaml",
    }
    match = re.search(r'(\.[A-Za-z0-9]+)$', path)
    if not match:
        return None
    return ext_map.get(match.group(1).lower())
