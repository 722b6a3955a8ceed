"""
utils.py: terminal output for the command line interface. Colors are turned
off when NO_COLOR is set.
"""
import os

def _color(code):
    """
    _color: returns the escape sequence for a terminal color, or nothing when
    NO_COLOR is set
    """
    if os.environ.get("NO_COLOR"):
        return ""
    return f"\033[{code}m"

RED = _color("31")
GREEN = _color("32")
YELLOW = _color("33")
BLUE = _color("34")
BOLD = _color("1")
RESET = _color("0")

def _emit(color, tag, msg):
    print(f"{color}[{tag}] {msg}{RESET}")

def info(msg):
    """
    info: progress of a node set phase
    """
    _emit(BLUE, "INFO", msg)

def success(msg):
    """
    success: a phase or a remote command finished cleanly
    """
    _emit(GREEN, "OK", msg)

def warning(msg):
    """
    warning: something the user should look at, the run goes on
    """
    _emit(YELLOW, "WARNING", msg)

def error(msg):
    """
    error: a failed phase, node or command
    """
    _emit(RED, "ERROR", msg)

def heading(msg):
    """
    heading: bold title above a block of per-node output
    """
    print(f"\n{BOLD}{msg}{RESET}")

def node_result(name, status):
    """
    node_result: reports the exit status of a remote command on one node
    :return: True when the command exited 0
    """
    if status == 0:
        success(f"{name}: exit 0")
        return True
    error(f"{name}: exit {status}")
    return False

def print_table(headers, rows):
    """
    print_table: prints rows as left-aligned columns under a bold header line
    """
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    fmt = "  ".join(f"{{:<{w}}}" for w in widths)
    print(BOLD + fmt.format(*headers) + RESET)
    for row in rows:
        print(fmt.format(*[str(cell) for cell in row]))
    print()
