"""Tests for the shell module.

The shell is the command interpreter.  It expands variables, tokenizes
the line, dispatches to built-in commands, and returns string output.
Every test runs against a freshly seeded session tree with home and
cwd at ``/home/user``.
"""

from nullterm.env import Environment
from nullterm.fs.seed import build_default_filesystem
from nullterm.logging import Logger, LogLevel
from nullterm.shell import Shell


def _shell() -> Shell:
    """Create a shell over a freshly seeded filesystem."""
    logger = Logger()
    return Shell(filesystem=build_default_filesystem(logger=logger), logger=logger)


class TestShellCreation:
    """Verify shell initialisation."""

    def test_default_environment_uses_home(self) -> None:
        """Without an explicit environment HOME is the filesystem's home."""
        shell = _shell()
        assert shell.environment.get("HOME") == "/home/user"
        assert shell.environment.get("USER") == "user"

    def test_explicit_environment(self) -> None:
        """A supplied environment is used as-is."""
        env = Environment({"USER": "alice", "HOSTNAME": "box"})
        shell = Shell(filesystem=build_default_filesystem(), environment=env)
        assert shell.environment is env
        assert shell.prompt() == "alice@box:~$ "

    def test_command_names_sorted(self) -> None:
        """command_names lists every command alphabetically."""
        names = _shell().command_names
        assert names == sorted(names)
        assert {"ls", "cd", "mkdir", "rm", "cp", "mv", "exit"} <= set(names)


class TestDispatch:
    """Verify parsing and dispatch."""

    def test_empty_line(self) -> None:
        """A blank line does nothing and is not recorded."""
        shell = _shell()
        assert shell.execute("   ") == ""
        assert shell.history == []

    def test_unknown_command(self) -> None:
        """Unknown commands are reported and logged."""
        shell = _shell()
        assert shell.execute("frobnicate") == "Unknown command: frobnicate"
        entry = shell.logger.filter(source="shell")[-1]
        assert entry.level is LogLevel.WARNING

    def test_errors_are_logged(self) -> None:
        """Error lines from a command are logged at ERROR level."""
        shell = _shell()
        shell.execute("cat missing.txt")
        entry = shell.logger.filter(min_level=LogLevel.ERROR, source="shell")[-1]
        assert entry.message == "cat: Cannot access 'missing.txt': No such file or directory"

    def test_quoted_arguments(self) -> None:
        """Quoted arguments reach the command as one token."""
        shell = _shell()
        shell.execute("mkdir 'My Stuff'")
        assert shell.filesystem.find("~/My Stuff") is not None

    def test_variable_expansion(self) -> None:
        """$NAME is replaced before tokenizing."""
        shell = _shell()
        assert shell.execute("echo $USER") == "user"

    def test_escaped_variable_is_literal(self) -> None:
        """A backslash before the dollar prints the reference itself."""
        shell = _shell()
        assert shell.execute(r"echo \$HOME") == "$HOME"
        assert shell.execute(r'echo "\$USER is" $USER') == "$USER is user"

    def test_line_of_only_empty_variable(self) -> None:
        """A line that expands to nothing does nothing."""
        assert _shell().execute("$NOTHING") == ""


class TestHelp:
    """Verify the help command."""

    def test_lists_commands(self) -> None:
        """help lists every command."""
        shell = _shell()
        output = shell.execute("help")
        assert output.startswith("Available commands: ")
        for name in shell.command_names:
            assert name in output

    def test_describes_command(self) -> None:
        """help <cmd> shows its usage."""
        output = _shell().execute("help ls")
        assert "Usage: ls [-a] [-l] [path]" in output

    def test_unknown_topic(self) -> None:
        """help for an unknown command is an error."""
        assert _shell().execute("help nope").startswith("Error:")


class TestLs:
    """Verify listing directories."""

    def test_lists_cwd(self) -> None:
        """ls without arguments lists the cwd, hiding dotfiles."""
        output = _shell().execute("ls")
        assert output.splitlines() == ["Desktop/", "Documents/", "Downloads/", "Pictures/"]

    def test_all_shows_hidden(self) -> None:
        """ls -a includes hidden entries."""
        output = _shell().execute("ls -a")
        assert ".bashrc.txt" in output.splitlines()

    def test_long_format(self) -> None:
        """ls -l shows kind and size."""
        output = _shell().execute("ls -l Documents")
        line = next(ln for ln in output.splitlines() if ln.endswith("notes.txt"))
        assert line.startswith("txt")

    def test_file_argument(self) -> None:
        """ls on a file lists just that file."""
        assert _shell().execute("ls Documents/notes.txt") == "notes.txt"

    def test_missing(self) -> None:
        """ls on a missing path is an error."""
        output = _shell().execute("ls nope")
        assert output == "Error: Cannot access 'nope': No such file or directory"

    def test_invalid_switch(self) -> None:
        """Unsupported switches are rejected with usage."""
        output = _shell().execute("ls -z")
        assert output.splitlines()[0] == "Error: ls: Invalid switch: -z"
        assert output.splitlines()[1].startswith("Usage: ls")


class TestNavigation:
    """Verify cd, pwd and the prompt."""

    def test_cd_and_pwd(self) -> None:
        """cd changes the directory pwd reports."""
        shell = _shell()
        assert shell.execute("cd Documents") == ""
        assert shell.execute("pwd") == "/home/user/Documents"

    def test_prompt_abbreviates_home(self) -> None:
        """The prompt shows the cwd relative to ~."""
        shell = _shell()
        assert shell.prompt() == "user@system:~$ "
        shell.execute("cd Documents")
        assert shell.prompt() == "user@system:~/Documents$ "
        shell.execute("cd /etc")
        assert shell.prompt() == "user@system:/etc$ "

    def test_cd_without_argument_goes_home(self) -> None:
        """Bare cd returns home."""
        shell = _shell()
        shell.execute("cd /")
        shell.execute("cd")
        assert shell.execute("pwd") == "/home/user"

    def test_cd_missing_keeps_cwd(self) -> None:
        """A failed cd reports and leaves the cwd alone."""
        shell = _shell()
        output = shell.execute("cd Documents/nope")
        assert output == "Error: cd: Cannot access 'nope': No such file or directory"
        assert shell.execute("pwd") == "/home/user"

    def test_cd_too_many_arguments(self) -> None:
        """cd takes at most one argument."""
        assert _shell().execute("cd a b").startswith("Error: cd: Too many arguments")


class TestMkdir:
    """Verify creating directories."""

    def test_creates_directory(self) -> None:
        """mkdir creates an empty directory."""
        shell = _shell()
        assert shell.execute("mkdir projects") == ""
        node = shell.filesystem.find("~/projects")
        assert node is not None
        assert node.is_directory

    def test_several_at_once(self) -> None:
        """mkdir accepts several paths."""
        shell = _shell()
        shell.execute("mkdir a b")
        assert shell.filesystem.find("~/a") is not None
        assert shell.filesystem.find("~/b") is not None

    def test_missing_parent_hints_p(self) -> None:
        """Without -p missing parents are an error with a hint."""
        output = _shell().execute("mkdir x/y")
        assert output.splitlines() == [
            "Error: Cannot access 'x': No such file or directory",
            "Hint: Try using the '-p' switch to create parent directories.",
        ]

    def test_parents(self) -> None:
        """mkdir -p creates the missing parents."""
        shell = _shell()
        assert shell.execute("mkdir -p x/y/z") == ""
        assert shell.filesystem.find("~/x/y/z") is not None

    def test_existing(self) -> None:
        """An existing entry is an error without -p."""
        shell = _shell()
        assert "already exists" in shell.execute("mkdir Documents")
        assert shell.execute("mkdir -p Documents") == ""

    def test_invalid_name_lists_violation(self) -> None:
        """An over-long name reports the broken rule."""
        output = _shell().execute("mkdir " + "x" * 300)
        assert output.startswith("Error: Invalid name")
        assert "exceeds max length" in output

    def test_empty_name_rejected(self) -> None:
        """An empty quoted name breaks the empty-name rule."""
        shell = _shell()
        assert shell.execute("mkdir ''") == "Error: Invalid name '': empty"
        assert shell.execute('mkdir -p ""') == "Error: Invalid name '': empty"

    def test_no_arguments(self) -> None:
        """mkdir without a path shows usage."""
        assert _shell().execute("mkdir").startswith("Usage: mkdir")


class TestFiles:
    """Verify touch, cat, write and echo."""

    def test_touch_creates_text_file(self) -> None:
        """touch without an extension creates a .txt file."""
        shell = _shell()
        shell.execute("touch todo")
        assert shell.filesystem.find("~/todo.txt") is not None

    def test_touch_existing_without_extension(self) -> None:
        """touch 'notes' finds the existing notes.txt instead of failing."""
        shell = _shell()
        assert shell.execute("touch Documents/notes") == ""

    def test_touch_unsupported_type(self) -> None:
        """Unknown extensions are rejected."""
        assert _shell().execute("touch song.mp3") == "Error: Unsupported file type: .mp3"

    def test_touch_empty_name_rejected(self) -> None:
        """touch with an empty name does not touch the current directory."""
        shell = _shell()
        before = shell.filesystem.cwd.metadata.modified
        assert shell.execute('touch ""') == "Error: Invalid name '': empty"
        assert shell.filesystem.cwd.metadata.modified == before

    def test_cat(self) -> None:
        """cat prints file contents."""
        assert _shell().execute("cat Documents/notes.txt").startswith("Meeting Notes")

    def test_cat_directory(self) -> None:
        """cat on a directory is an error."""
        assert _shell().execute("cat Documents").startswith("Error:")

    def test_write_then_cat(self) -> None:
        """write replaces content; cat shows it."""
        shell = _shell()
        assert shell.execute('write Documents/notes.txt "new text" here') == ""
        assert shell.execute("cat Documents/notes.txt") == "new text here"

    def test_write_creates_file(self) -> None:
        """write creates a missing file."""
        shell = _shell()
        shell.execute("write plan.md step one")
        assert shell.execute("cat plan.md") == "step one"

    def test_echo_joins_params(self) -> None:
        """echo prints its parameters separated by spaces."""
        assert _shell().execute('echo "Hello   World" again') == "Hello   World again"

    def test_echo_drops_switches(self) -> None:
        """Switch tokens are not echoed."""
        assert _shell().execute("echo -n hi") == "hi"


class TestRm:
    """Verify removing files and directories."""

    def test_remove_file(self) -> None:
        """rm deletes a file."""
        shell = _shell()
        assert shell.execute("rm Documents/notes.txt") == ""
        assert shell.filesystem.find("~/Documents/notes.txt") is None

    def test_non_empty_needs_r(self) -> None:
        """A non-empty directory needs -r, with a hint."""
        shell = _shell()
        output = shell.execute("rm Documents")
        assert output.splitlines()[0] == "Error: Cannot remove 'Documents': Directory not empty"
        assert output.splitlines()[1].startswith("Hint:")
        assert shell.filesystem.find("~/Documents") is not None

    def test_recursive(self) -> None:
        """rm -r deletes a whole subtree."""
        shell = _shell()
        assert shell.execute("rm -r Documents") == ""
        assert shell.filesystem.find("~/Documents") is None

    def test_root_refused(self) -> None:
        """The root cannot be removed."""
        output = _shell().execute("rm -r /")
        assert output == "Error: Cannot remove '/': Preserved directory"

    def test_dot_and_dotdot_refused(self) -> None:
        """The cwd and its parent cannot be removed."""
        shell = _shell()
        shell.execute("cd Documents")
        assert shell.execute("rm -r .").startswith("Error: Cannot remove '.'")
        assert shell.execute("rm -r ..").startswith("Error: Cannot remove '..'")

    def test_home_preserved(self) -> None:
        """The subtree holding home is refused."""
        shell = _shell()
        shell.execute("cd /")
        assert "Preserved directory" in shell.execute("rm -r home")
        assert shell.filesystem.find("/home/user") is not None

    def test_missing(self) -> None:
        """Removing a missing path is an error."""
        assert _shell().execute("rm nope").startswith("Error: Cannot access 'nope'")

    def test_cwd_refusal_names_typed_path(self) -> None:
        """Refusing the cwd quotes the path as it was typed."""
        shell = _shell()
        assert shell.execute("rm -r ~") == (
            "Error: Cannot remove '~': Refusing to remove the current directory"
        )
        shell.execute("cd Documents")
        output = shell.execute("rm -r /home/user/Documents")
        assert output.startswith("Error: Cannot remove '/home/user/Documents': Refusing")

    def test_empty_name_rejected(self) -> None:
        """rm '' is an invalid name, not the current directory."""
        assert _shell().execute("rm ''") == "Error: Invalid name '': empty"


class TestCp:
    """Verify copying."""

    def test_copy_into_directory(self) -> None:
        """Copying into a directory keeps the name."""
        shell = _shell()
        assert shell.execute("cp Documents/notes.txt Desktop") == ""
        assert shell.execute("cat Desktop/notes.txt").startswith("Meeting Notes")

    def test_copy_to_new_name(self) -> None:
        """A missing destination names the copy."""
        shell = _shell()
        shell.execute("cp Documents/notes.txt copy")
        assert shell.filesystem.find("~/copy.txt") is not None

    def test_copy_over_file(self) -> None:
        """Copying onto an existing file replaces its content."""
        shell = _shell()
        shell.execute("cp Documents/notes.txt Documents/resume.txt")
        assert shell.execute("cat Documents/resume.txt").startswith("Meeting Notes")

    def test_directory_needs_r(self) -> None:
        """Directories are skipped without -r."""
        output = _shell().execute("cp Documents Desktop")
        assert output.splitlines()[0] == "Error: cp: Omitting directory 'Documents'"

    def test_recursive(self) -> None:
        """cp -r copies a directory with its contents."""
        shell = _shell()
        assert shell.execute("cp -r Documents Desktop") == ""
        assert shell.filesystem.find("~/Desktop/Documents/project_files/README.md") is not None
        assert shell.filesystem.find("~/Documents/notes.txt") is not None

    def test_several_sources_need_directory(self) -> None:
        """Several sources require an existing directory destination."""
        output = _shell().execute("cp Documents/notes.txt Documents/resume.txt nowhere")
        assert output == "Error: cp: Target 'nowhere' is not a directory"

    def test_missing_operand(self) -> None:
        """cp needs a source and a destination."""
        assert _shell().execute("cp a").startswith("Usage: cp")


class TestMv:
    """Verify moving and renaming."""

    def test_rename(self) -> None:
        """mv to a missing name renames."""
        shell = _shell()
        assert shell.execute("mv Documents/notes.txt Documents/todo.md") == ""
        node = shell.filesystem.find("~/Documents/todo.md")
        assert node is not None
        assert shell.filesystem.find("~/Documents/notes.txt") is None

    def test_move_into_directory(self) -> None:
        """mv into a directory keeps the name."""
        shell = _shell()
        shell.execute("mv Documents/notes.txt Desktop")
        assert shell.filesystem.find("~/Desktop/notes.txt") is not None

    def test_several_sources(self) -> None:
        """Several sources move into one directory."""
        shell = _shell()
        shell.execute("mv Documents/notes.txt Documents/resume.txt Desktop")
        assert shell.filesystem.find("~/Desktop/notes.txt") is not None
        assert shell.filesystem.find("~/Desktop/resume.txt") is not None

    def test_over_existing_file(self) -> None:
        """Moving onto a file replaces it."""
        shell = _shell()
        shell.execute("mv Documents/notes.txt Documents/resume.txt")
        assert shell.execute("cat Documents/resume.txt").startswith("Meeting Notes")
        assert shell.filesystem.find("~/Documents/notes.txt") is None

    def test_rename_to_own_name(self) -> None:
        """Renaming a file to its own name without extension does nothing."""
        shell = _shell()
        assert shell.execute("mv Documents/notes.txt Documents/notes") == ""
        assert shell.execute("cat Documents/notes.txt").startswith("Meeting Notes")

    def test_into_itself_refused(self) -> None:
        """A directory cannot move beneath itself."""
        shell = _shell()
        output = shell.execute("mv Documents Documents/project_files")
        assert output == "Error: Cannot move 'Documents' into itself"
        assert shell.filesystem.find("~/Documents/project_files") is not None


class TestInspection:
    """Verify tree and stat."""

    def test_tree(self) -> None:
        """tree draws a directory and counts its contents."""
        lines = _shell().execute("tree Documents").splitlines()
        assert lines[0] == "Documents"
        assert "├── notes.txt" in lines
        assert lines[-1] == "1 directories, 5 files"

    def test_tree_on_file(self) -> None:
        """tree needs a directory."""
        assert _shell().execute("tree Documents/notes.txt").startswith("Error:")

    def test_stat(self) -> None:
        """stat describes a node."""
        output = _shell().execute("stat Documents/notes.txt")
        assert "File: /home/user/Documents/notes.txt" in output
        assert "Type: Text File" in output
        assert "Hidden: no" in output


class TestSessionCommands:
    """Verify history, environment, log and exit."""

    def test_history(self) -> None:
        """history lists earlier commands in order."""
        shell = _shell()
        shell.execute("pwd")
        shell.execute("ls")
        assert shell.execute("history").splitlines() == ["  1  pwd", "  2  ls", "  3  history"]

    def test_env(self) -> None:
        """env lists the variables."""
        output = _shell().execute("env")
        assert "USER=user" in output.splitlines()
        assert "HOME=/home/user" in output.splitlines()

    def test_export_and_expand(self) -> None:
        """Exported variables expand on later lines."""
        shell = _shell()
        assert shell.execute("export GREETING=hello") == ""
        assert shell.execute("echo $GREETING") == "hello"

    def test_export_invalid(self) -> None:
        """export needs KEY=VALUE with a valid key."""
        shell = _shell()
        assert shell.execute("export NOPE").startswith("Usage: export")
        assert shell.execute("export 1X=y").startswith("Error: export:")

    def test_unset(self) -> None:
        """unset removes a variable; unknown names are ignored."""
        shell = _shell()
        shell.execute("export A=1")
        assert shell.execute("unset A MISSING") == ""
        assert "A" not in shell.environment

    def test_prompt_follows_user(self) -> None:
        """Changing USER changes the prompt."""
        shell = _shell()
        shell.execute("export USER=alice")
        assert shell.prompt().startswith("alice@system:")

    def test_log_shows_entries(self) -> None:
        """log prints filesystem and shell entries."""
        shell = _shell()
        shell.execute("cd nowhere")
        output = shell.execute("log")
        assert "[WARNING] fs:" in output
        assert "[ERROR] shell: cd:" in output

    def test_exit(self) -> None:
        """exit returns the sentinel."""
        assert _shell().execute("exit") == Shell.EXIT_SENTINEL
