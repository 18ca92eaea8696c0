from pathlib import Path

from kubefunc.infra.constants import DEFAULT_CONSTANTS


def get_project_root(start: Path | None = None) -> Path:
    """Get the function app project directory.

    Walks up from ``start`` (default: the current directory) to find the
    project root, identified by the presence of host.json.

    Returns:
        Path to the project root, or ``start`` itself when no host.json is found
    """
    current = (start or Path.cwd()).resolve()

    for parent in [current, *current.parents]:
        if (parent / DEFAULT_CONSTANTS.HOST_JSON).is_file():
            return parent

    return current
