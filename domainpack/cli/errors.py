"""
Turn exceptions raised while loading into one-line CLI messages.
"""

import yaml

from ..errors import ConfigError, ModelLoadError


def format_cli_error(err: BaseException) -> str:
    """
    Format an error into a user-friendly message without a traceback.

    Handles YAML syntax errors (with 1-based line/column when known),
    missing files, permission problems, shape errors and config errors.
    """
    if isinstance(err, yaml.YAMLError):
        reason = getattr(err, 'problem', None) or "invalid YAML syntax"
        mark = getattr(err, 'problem_mark', None)
        if mark is not None:
            location = f"line {mark.line + 1}, column {mark.column + 1}"
            source = f"{mark.name} " if mark.name and not mark.name.startswith('<') else ""
            return f"Failed to parse YAML: {reason} ({source}{location})"
        return f"Failed to parse YAML: {reason}"

    if isinstance(err, ModelLoadError):
        return f"Invalid record in {err.path}: {err.reason}"

    if isinstance(err, ConfigError):
        location = f" ({err.path})" if err.path else ""
        return f"Configuration error: {err}{location}"

    if isinstance(err, FileNotFoundError):
        path = f' "{err.filename}"' if err.filename else ""
        return f"File not found:{path}. Check that the path exists and the .dkk/ directory is present."

    if isinstance(err, PermissionError):
        path = f' "{err.filename}"' if err.filename else ""
        return f"Permission denied:{path}. Check file permissions."

    if isinstance(err, IsADirectoryError):
        path = f' "{err.filename}"' if err.filename else ""
        return f"Expected a file but found a directory:{path}."

    if isinstance(err, OSError):
        path = f' "{err.filename}"' if err.filename else ""
        return f"System error:{path} {err.strerror or err}"

    return str(err)
