"""CLI constants and text."""

from prompt_toolkit.styles import Style

STYLE = Style.from_dict(
    {
        "prompt": "#F45935 bold",
    }
)

GREEN = "\033[32m"
RED = "\033[31m"
YELLOW = "\033[33m"
RESET = "\033[0m"

PROG = "chunkup"

PASSWORD_PROMPT = "Password: "

DESCRIPTION = (
    "Upload a file or directory tree to a generic artifact registry with "
    "resumable, chunked, parallel transfers, or pull artifacts back."
)

EPILOG = """Examples:
  Upload a file:
    chunkup -u alice@example.com:secret -p ./test.txt \\
      -r "https://team-generic.pkg.example.com/project/generic-repo/chunks/test.txt?version=latest"

  Upload a directory:
    chunkup -u alice@example.com --dir -p ./dist \\
      -r "https://team-generic.pkg.example.com/project/generic-repo?version=latest"

  Download artifacts:
    chunkup -u alice@example.com --pull -p . \\
      -r "https://team-generic.pkg.example.com/project/generic-repo/list?version=latest"

An interrupted upload resumes when the same command is run again."""

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
