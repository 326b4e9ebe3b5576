from __future__ import annotations


class PathError(ValueError):
    pass


class FolderNameError(PathError):
    pass


class TemplateNameError(PathError):
    pass


class FolderNotEmptyError(OSError):
    pass


class ThemeValidationError(ValueError):
    pass
