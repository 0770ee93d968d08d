"""
Command-line interface for work-rules.

Subcommands edit rule books on disk and run passes against a colony
snapshot. `edit` opens an interactive shell with completion.
"""

import argparse
import logging
import shlex
import sys
from pathlib import Path

from prompt_toolkit import prompt as pt_prompt
from prompt_toolkit.completion import WordCompleter

from ..host.colony import load_colony_yaml, save_colony_yaml
from ..state import RuleBookManager
from ..state.catalog import load_catalog_yaml
from ..systems.hooks import attach_after
from ..systems.reconciliation import PassStatus, ReconciliationLoop
from ..systems.scheduler import IntervalScheduler
from . import editor
from .config import load_config, set_last_rulebook, tick_interval
from .renderer import (
    console, THEME, pt_style,
    render_categories, render_changes, render_message, render_pass,
    render_rulebooks, render_rules,
)

logger = logging.getLogger(__name__)


# Interactive shell commands with descriptions
SHELL_COMMANDS = {
    "categories": "List work categories",
    "show": "show <category> - rules for a category",
    "add": "add <category> [min max priority]",
    "set": "set <category> <rule#|id> <min|-> <max|-> <priority|->",
    "rm": "rm <category> <rule#|id>",
    "clear": "clear <category> - remove all rules",
    "list": "List rule books",
    "save": "Save the rule book",
    "help": "Show commands",
    "quit": "Exit",
    "exit": "Exit",
}


def configure_logging(level: str = "INFO", verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(message)s',
    )


def _open_rulebook(manager: RuleBookManager, identifier: str | None) -> bool:
    """Load the requested rule book, else the last used, else the newest."""
    if identifier is None:
        identifier = load_config(manager.store.rules_dir).get("last_rulebook") or "1"

    rulebook = manager.load_rulebook(identifier)
    if rulebook is None:
        render_message(False, f"Rule book not found: {identifier}. Use 'new' to create one.")
        return False

    report = manager.last_load_report
    if report is not None and not report.clean:
        console.print(
            f"[{THEME['warning']}]{len(report.issues)} problem(s) fixed while loading; "
            f"save to keep the corrected rules[/{THEME['warning']}]"
        )
    return True


def _finish_edit(manager: RuleBookManager, result: editor.CommandResult) -> int:
    render_message(result.success, result.message)
    if not result.success:
        return 1
    manager.save_rulebook()
    return 0


# -----------------------------------------------------------------------------
# Subcommands
# -----------------------------------------------------------------------------

def cmd_new(manager: RuleBookManager, args: argparse.Namespace) -> int:
    """Create a new rule book and make it the default."""
    rulebook = manager.create_rulebook(" ".join(args.name))
    set_last_rulebook(rulebook.meta.id, manager.store.rules_dir)
    console.print(f"[green]Created rule book:[/green] {rulebook.meta.name} [dim]({rulebook.meta.id})[/dim]")
    return 0


def cmd_list(manager: RuleBookManager, args: argparse.Namespace) -> int:
    """List all rule books."""
    last = load_config(manager.store.rules_dir).get("last_rulebook")
    render_rulebooks(manager.list_rulebooks(), current_id=last)
    return 0


def cmd_use(manager: RuleBookManager, args: argparse.Namespace) -> int:
    """Make a rule book the default for later commands."""
    if not _open_rulebook(manager, args.rulebook):
        return 1
    set_last_rulebook(manager.session_id, manager.store.rules_dir)
    console.print(f"[green]Using:[/green] {manager.current.meta.name}")
    return 0


def cmd_categories(manager: RuleBookManager, args: argparse.Namespace) -> int:
    if not _open_rulebook(manager, args.book):
        return 1
    render_categories(editor.list_categories(manager))
    return 0


def cmd_show(manager: RuleBookManager, args: argparse.Namespace) -> int:
    if not _open_rulebook(manager, args.book):
        return 1
    result = editor.show_rules(manager, args.category)
    if not result.success:
        render_message(False, result.message)
        return 1
    render_rules(result.data)
    return 0


def cmd_add(manager: RuleBookManager, args: argparse.Namespace) -> int:
    if not _open_rulebook(manager, args.book):
        return 1
    result = editor.add_rule(
        manager, args.category,
        min_skill=args.min, max_skill=args.max, priority=args.priority,
    )
    return _finish_edit(manager, result)


def cmd_set(manager: RuleBookManager, args: argparse.Namespace) -> int:
    if not _open_rulebook(manager, args.book):
        return 1
    result = editor.update_rule(
        manager, args.category, args.rule,
        min_skill=args.min, max_skill=args.max, priority=args.priority,
    )
    return _finish_edit(manager, result)


def cmd_remove(manager: RuleBookManager, args: argparse.Namespace) -> int:
    if not _open_rulebook(manager, args.book):
        return 1
    return _finish_edit(manager, editor.delete_rule(manager, args.category, args.rule))


def cmd_clear(manager: RuleBookManager, args: argparse.Namespace) -> int:
    if not _open_rulebook(manager, args.book):
        return 1
    return _finish_edit(manager, editor.clear_category(manager, args.category))


def cmd_run(manager: RuleBookManager, args: argparse.Namespace) -> int:
    """
    Apply the rule book to a colony snapshot.

    --dry-run previews, --host-pass runs the colony's own assignment first
    (rules follow it), --ticks drives the periodic trigger instead.
    """
    if not _open_rulebook(manager, args.book):
        return 1

    colony = load_colony_yaml(args.colony, manager.catalog)

    if args.dry_run:
        result = editor.dry_run(manager, colony, colony)
        render_message(result.success, result.message)
        render_changes(result.data["changes"] if result.data else [], title="Pending Changes")
        return 0 if result.success else 1

    config = load_config(manager.store.rules_dir)
    interval = args.interval or tick_interval(config)
    loop = ReconciliationLoop(
        manager,
        eligibility=colony,
        attributes=colony,
        scheduler=IntervalScheduler.for_clock(colony, interval),
    )

    results = []
    if args.ticks:
        for _ in range(args.ticks):
            result = loop.tick()
            if result is not None:
                results.append(result)
        if not results:
            console.print(
                f"[{THEME['dim']}]No pass ran in {args.ticks} ticks "
                f"(interval {interval})[/{THEME['dim']}]"
            )
    elif args.host_pass:
        attach_after(colony, "refresh_assignments", loop)
        writes = colony.refresh_assignments()
        console.print(f"[{THEME['dim']}]Host assignment wrote {writes} priorities[/{THEME['dim']}]")
        if loop.last_result is not None:
            results.append(loop.last_result)
    else:
        results.append(loop.run_now())

    loop.close()
    for result in results:
        render_pass(result)

    if args.write:
        save_colony_yaml(colony, args.colony)
        console.print(f"[{THEME['accent']}]Wrote {args.colony}[/{THEME['accent']}]")

    failed = any(r.status == PassStatus.FAILED for r in results)
    return 1 if failed else 0


def cmd_edit(manager: RuleBookManager, args: argparse.Namespace) -> int:
    if not _open_rulebook(manager, args.book):
        return 1
    run_shell(manager)
    return 0


# -----------------------------------------------------------------------------
# Interactive shell
# -----------------------------------------------------------------------------

def _optional_int(token: str) -> int | None:
    """'-' keeps the current value."""
    if token == "-":
        return None
    return int(token)


def _shell_ints(tokens: list[str]) -> list[int | None]:
    values = [_optional_int(t) for t in tokens[:3]]
    return values + [None] * (3 - len(values))


def _show_shell_help() -> None:
    for cmd, description in SHELL_COMMANDS.items():
        console.print(f"  [{THEME['accent']}]{cmd:<12}[/{THEME['accent']}] {description}")


def handle_shell_command(manager: RuleBookManager, line: str) -> bool:
    """
    Run one shell line. Returns False when the shell should exit.
    """
    try:
        parts = shlex.split(line)
    except ValueError as e:
        render_message(False, f"Could not parse: {e}")
        return True
    if not parts:
        return True

    cmd, rest = parts[0].lower(), parts[1:]

    if cmd in ("quit", "exit"):
        return False

    if cmd == "help":
        _show_shell_help()
    elif cmd == "categories":
        render_categories(editor.list_categories(manager))
    elif cmd == "list":
        render_rulebooks(manager.list_rulebooks(), current_id=manager.session_id)
    elif cmd == "save":
        manager.save_rulebook()
        console.print(f"[{THEME['accent']}]Saved[/{THEME['accent']}]")
    elif cmd in ("show", "add", "set", "rm", "clear"):
        if not rest:
            render_message(False, f"Usage: {SHELL_COMMANDS[cmd]}")
            return True
        try:
            _run_rule_command(manager, cmd, rest)
        except ValueError:
            render_message(False, f"Usage: {SHELL_COMMANDS[cmd]}")
    else:
        render_message(False, f"Unknown command: {cmd}. Type help for commands.")

    return True


def _run_rule_command(manager: RuleBookManager, cmd: str, rest: list[str]) -> None:
    category = rest[0]

    if cmd == "show":
        result = editor.show_rules(manager, category)
        if result.success:
            render_rules(result.data)
        else:
            render_message(False, result.message)
        return

    if cmd == "add":
        min_skill, max_skill, priority = _shell_ints(rest[1:])
        result = editor.add_rule(manager, category, min_skill, max_skill, priority)
    elif cmd == "set":
        if len(rest) < 2:
            raise ValueError("rule reference required")
        min_skill, max_skill, priority = _shell_ints(rest[2:])
        result = editor.update_rule(manager, category, rest[1], min_skill, max_skill, priority)
    elif cmd == "rm":
        if len(rest) < 2:
            raise ValueError("rule reference required")
        result = editor.delete_rule(manager, category, rest[1])
    else:
        result = editor.clear_category(manager, category)

    _finish_edit(manager, result)


def run_shell(manager: RuleBookManager) -> None:
    """Prompt loop for editing the current rule book."""
    words = list(SHELL_COMMANDS) + [c.key for c in manager.catalog.configurable()]
    completer = WordCompleter(words, ignore_case=True, meta_dict=SHELL_COMMANDS)

    console.print(
        f"[{THEME['primary']}]Editing {manager.current.meta.name}[/{THEME['primary']}] "
        f"[{THEME['dim']}]Type help for commands.[/{THEME['dim']}]"
    )

    while True:
        try:
            line = pt_prompt(
                "rules> ",
                completer=completer,
                style=pt_style,
                complete_while_typing=True,
            ).strip()
        except (KeyboardInterrupt, EOFError):
            break

        if not handle_shell_command(manager, line):
            break

    manager.save_rulebook()
    console.print(f"[{THEME['dim']}]Saved. Bye.[/{THEME['dim']}]")


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="work-rules",
        description="Skill-range work priority rules",
    )
    parser.add_argument("--rules-dir", help="Rule book directory (default from config)")
    parser.add_argument("--catalog", type=Path, help="YAML file of work categories")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    def with_book(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument("--book", "-b", help="Rule book ID, prefix or list number")
        return p

    def with_values(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument("--min", type=int, help="Lowest skill (0-20)")
        p.add_argument("--max", type=int, help="Highest skill (0-20)")
        p.add_argument("--priority", "-p", type=int, help="Priority (1 highest, 4 lowest)")
        return p

    p = sub.add_parser("new", help="Create a rule book")
    p.add_argument("name", nargs="+")
    p.set_defaults(handler=cmd_new)

    p = sub.add_parser("list", help="List rule books")
    p.set_defaults(handler=cmd_list)

    p = sub.add_parser("use", help="Set the default rule book")
    p.add_argument("rulebook")
    p.set_defaults(handler=cmd_use)

    p = with_book(sub.add_parser("categories", help="List work categories"))
    p.set_defaults(handler=cmd_categories)

    p = with_book(sub.add_parser("show", help="Show rules for a category"))
    p.add_argument("category")
    p.set_defaults(handler=cmd_show)

    p = with_values(with_book(sub.add_parser("add", help="Add a rule")))
    p.add_argument("category")
    p.set_defaults(handler=cmd_add)

    p = with_values(with_book(sub.add_parser("set", help="Edit a rule")))
    p.add_argument("category")
    p.add_argument("rule", help="Rule number or ID")
    p.set_defaults(handler=cmd_set)

    p = with_book(sub.add_parser("remove", help="Remove a rule"))
    p.add_argument("category")
    p.add_argument("rule", help="Rule number or ID")
    p.set_defaults(handler=cmd_remove)

    p = with_book(sub.add_parser("clear", help="Remove all rules for a category"))
    p.add_argument("category")
    p.set_defaults(handler=cmd_clear)

    p = with_book(sub.add_parser("run", help="Apply rules to a colony snapshot"))
    p.add_argument("colony", type=Path, help="Colony YAML file")
    p.add_argument("--write", "-w", action="store_true", help="Save the colony afterwards")
    p.add_argument("--dry-run", "-n", action="store_true", help="Show changes without applying")
    p.add_argument("--host-pass", action="store_true", help="Run the colony's own assignment first")
    p.add_argument("--ticks", type=int, default=0, help="Drive the periodic trigger for N ticks")
    p.add_argument("--interval", type=int, help="Ticks between passes (default from config)")
    p.set_defaults(handler=cmd_run)

    p = with_book(sub.add_parser("edit", help="Interactive rule editor"))
    p.set_defaults(handler=cmd_edit)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    rules_dir = Path(args.rules_dir or load_config().get("rules_dir", "rulebooks"))
    config = load_config(rules_dir)
    configure_logging(config.get("log_level", "INFO"), verbose=args.verbose)

    catalog = load_catalog_yaml(args.catalog) if args.catalog else None
    manager = RuleBookManager(rules_dir, catalog=catalog)

    try:
        return args.handler(manager, args)
    except FileNotFoundError as e:
        render_message(False, str(e))
        return 1
    finally:
        manager.end_session()


if __name__ == "__main__":
    sys.exit(main())
