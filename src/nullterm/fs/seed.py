"""The initial session tree.

Every session starts from the same small, Unix-looking tree so the
terminal has something to explore.  The layout is fixed; nothing here
is configurable.  Home and the starting cwd are ``/home/user``.
"""

from nullterm.fs.filesystem import FileSystem
from nullterm.logging import Logger

HOME_PATH = "/home/user"

_BASHRC = (
    "# .bashrc\n\n"
    "# Source global definitions\n"
    "if [ -f /etc/bashrc ]; then\n"
    "\t. /etc/bashrc\n"
    "fi\n\n"
    "# User specific aliases and functions\n"
    "alias ll='ls -alF'\n"
    "alias la='ls -A'\n"
    "alias l='ls -CF'\n"
)

_GITCONFIG = (
    "[user]\n\tname = user\n\temail = user@example.com\n"
    "[alias]\n\tst = status\n\tco = checkout\n\tbr = branch\n"
)

_README = (
    "# Project Files\n\n"
    "This directory contains files related to the project.\n"
    "- README.md: This file\n"
    "- config.json: Configuration settings"
)

_CONFIG_JSON = '{\n  "setting1": "value1",\n  "enabled": true,\n  "port": 8080\n}'

# (directory path, file name, content); directories are created on demand.
_FILES: list[tuple[str, str, str]] = [
    ("/home/user", ".bashrc", _BASHRC),
    ("/home/user", ".gitconfig", _GITCONFIG),
    (
        "/home/user/Documents",
        "resume.txt",
        "Objective: To obtain a challenging position...\n\nExperience:\n...\n\nSkills:\n...",
    ),
    (
        "/home/user/Documents",
        "notes.txt",
        "Meeting Notes\n- Discuss project timeline\n- Assign action items\n"
        "- Next meeting scheduled for Friday",
    ),
    (
        "/home/user/Documents",
        "project_ideas.txt",
        "1. Web Terminal\n2. Task Manager\n3. Recipe App",
    ),
    ("/home/user/Documents/project_files", "README.md", _README),
    ("/home/user/Documents/project_files", "config.json", _CONFIG_JSON),
    ("/home/user/Pictures/Photos/vacation", "beach.jpg", "[Simulated JPEG data for beach photo]"),
    (
        "/home/user/Pictures/Photos/vacation",
        "mountains.jpg",
        "[Simulated JPEG data for mountain photo]",
    ),
    ("/home/user/Pictures/Photos/vacation", "sunset.png", "[Simulated PNG data for sunset photo]"),
    (
        "/home/user/Pictures/Photos/screenshots",
        "screenshot1.png",
        "[Simulated PNG data for screenshot 1]",
    ),
    (
        "/home/user/Pictures/Photos/screenshots",
        "screenshot2.png",
        "[Simulated PNG data for screenshot 2]",
    ),
    ("/home/user/Downloads", "app_installer.exe", "[Simulated executable data]"),
    ("/home/user/Downloads", "wallpaper.jpg", "[Simulated JPEG data for wallpaper]"),
    (
        "/home/user/Desktop",
        "shortcut_to_example.url",
        "[InternetShortcut]\nURL=http://example.com/",
    ),
    ("/home/user/Desktop", "presentation_draft.pptx", "[Simulated PowerPoint data]"),
    ("/etc", "system.conf", "# System Configuration\ndaemon_enabled=true\nlog_level=INFO"),
    (
        "/var/logs",
        "app.log",
        "INFO: Application started.\nWARN: Cache cleared.\nERROR: Connection refused.",
    ),
    ("/tmp", "temp_file_123.tmp", "Temporary data generated at session start"),  # noqa: S108
]

_EMPTY_DIRS: list[str] = ["/usr/bin"]


def _ensure_directory(fs: FileSystem, path: str) -> None:
    result = fs.resolve_path(path, create_intermediate=True)
    if result.target is None and result.parent is not None:
        fs.create_directory(result.parent, result.target_name)


def build_default_filesystem(*, logger: Logger | None = None) -> FileSystem:
    """Build the session's starting tree.

    Returns:
        A filesystem with home and cwd both set to ``/home/user``.

    """
    fs = FileSystem(logger=logger)
    for top in ("home", "usr", "etc", "var", "tmp"):
        fs.create_directory(fs.root, top)
    for user_dir in ("Documents", "Pictures", "Downloads", "Desktop"):
        _ensure_directory(fs, f"{HOME_PATH}/{user_dir}")

    for path in _EMPTY_DIRS:
        _ensure_directory(fs, path)
    for directory, name, content in _FILES:
        _ensure_directory(fs, directory)
        parent = fs.find(directory)
        if parent is None:  # pragma: no cover - created just above
            msg = f"Seed directory missing: {directory}"
            raise RuntimeError(msg)
        fs.create_file(parent, name, content)

    fs.home = fs.find(HOME_PATH)
    fs.navigate_to("")
    return fs
