"""Template discovery, rendering and management."""

from .library import TemplateListing, add_template, list_templates
from .renderer import (
    FileRef,
    FixInfo,
    GitInfo,
    TemplateData,
    build_template_data,
    collect_git_info,
    render,
)
from .store import (
    TEMPLATE_KINDS,
    FileSystemTemplateStore,
    TemplateHandle,
    TemplateInfo,
    TemplateKind,
    TemplateStore,
    strip_default_marker,
)

__all__ = [
    "TEMPLATE_KINDS",
    "FileRef",
    "FileSystemTemplateStore",
    "FixInfo",
    "GitInfo",
    "TemplateData",
    "TemplateHandle",
    "TemplateInfo",
    "TemplateKind",
    "TemplateListing",
    "TemplateStore",
    "add_template",
    "build_template_data",
    "collect_git_info",
    "list_templates",
    "render",
    "strip_default_marker",
]
