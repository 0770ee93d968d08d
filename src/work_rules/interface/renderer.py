"""
Display helpers for the work-rules CLI.

Rich tables for rule books, categories, rules and pass results.
"""

from rich.console import Console
from rich.table import Table
from prompt_toolkit.styles import Style as PTStyle

from ..systems.reconciliation import PassResult, PassStatus, PriorityChange


# Shared console instance
console = Console()

THEME = {
    "primary": "steel_blue",
    "accent": "cyan",
    "warning": "dark_goldenrod",
    "danger": "dark_red",
    "dim": "dim",
}

# Prompt toolkit style to match theme
pt_style = PTStyle.from_dict({
    "completion-menu.completion": "bg:#1e3a5f #c0c0c0",
    "completion-menu.completion.current": "bg:#3a6a9f #ffffff bold",
    "prompt": "#4682b4 bold",
})

# Priority 1 is the most urgent
PRIORITY_COLORS = {
    0: "grey50",
    1: "red",
    2: "dark_orange",
    3: "green3",
    4: "steel_blue",
}

PASS_STATUS_COLORS = {
    PassStatus.COMPLETED: "green",
    PassStatus.NO_SESSION: "yellow",
    PassStatus.NO_RULES: "yellow",
    PassStatus.MISSING_COLLABORATOR: "dark_orange",
    PassStatus.FAILED: "red",
}


def format_priority(priority: int) -> str:
    color = PRIORITY_COLORS.get(priority, "white")
    label = "off" if priority == 0 else str(priority)
    return f"[{color}]{label}[/{color}]"


def render_message(success: bool, message: str) -> None:
    color = "green" if success else "red"
    console.print(f"[{color}]{message}[/{color}]")


def render_rulebooks(rulebooks: list[dict], current_id: str | None = None) -> None:
    """Table of saved rule books, newest first."""
    if not rulebooks:
        console.print(f"[{THEME['dim']}]No rule books found[/{THEME['dim']}]")
        return

    table = Table(title="Rule Books")
    table.add_column("#", style="dim")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Categories")
    table.add_column("Rules")
    table.add_column("Last Saved")

    for i, book in enumerate(rulebooks, 1):
        marker = " *" if book["id"] == current_id else ""
        table.add_row(
            str(i),
            book["id"],
            f"{book['name']}{marker}",
            str(book["categories"]),
            str(book["rule_count"]),
            book.get("display_time", ""),
        )

    console.print(table)


def render_categories(rows: list[dict]) -> None:
    """Configurable categories and how many rules each has."""
    table = Table(title="Work Categories")
    table.add_column("Key", style=THEME["accent"])
    table.add_column("Label")
    table.add_column("Skill")
    table.add_column("Rules", justify="right")

    for row in rows:
        count = row["rule_count"]
        table.add_row(
            row["key"],
            row["label"],
            row["skill"] or f"[{THEME['dim']}]none[/{THEME['dim']}]",
            str(count) if count else f"[{THEME['dim']}]-[/{THEME['dim']}]",
        )

    console.print(table)


def render_rules(data: dict) -> None:
    """Rules for one category, in evaluation order, with uncovered ranges."""
    table = Table(title=f"{data['label']} ({data['skill'] or 'no skill'})")
    table.add_column("#", style="dim")
    table.add_column("ID", style="dim")
    table.add_column("Skill Range")
    table.add_column("Priority", justify="center")

    for row in data["rules"]:
        table.add_row(
            str(row["index"]),
            row["id"],
            f"{row['min_skill']} - {row['max_skill']}",
            format_priority(row["priority"]),
        )

    console.print(table)

    if not data["rules"]:
        console.print(f"[{THEME['dim']}]No rules: the host's own priorities apply[/{THEME['dim']}]")
        return

    gaps = data.get("gaps") or []
    if gaps:
        spans = ", ".join(f"{start}-{end}" if start != end else str(start) for start, end in gaps)
        console.print(
            f"[{THEME['warning']}]Skills {spans} match no rule and get no work[/{THEME['warning']}]"
        )


def render_changes(changes: list[PriorityChange], title: str = "Priority Changes") -> None:
    if not changes:
        console.print(f"[{THEME['dim']}]No priority changes[/{THEME['dim']}]")
        return

    table = Table(title=title)
    table.add_column("Pawn")
    table.add_column("Category")
    table.add_column("Before", justify="center")
    table.add_column("After", justify="center")

    for change in changes:
        table.add_row(
            change.entity_id,
            change.category,
            format_priority(change.before),
            format_priority(change.after),
        )

    console.print(table)


def render_pass(result: PassResult) -> None:
    """Summary line for a pass, then its writes."""
    color = PASS_STATUS_COLORS.get(result.status, "white")
    console.print(
        f"[{color}]Pass {result.status.value}[/{color}] "
        f"[{THEME['dim']}]({result.trigger}: {result.entities_checked} pawns, "
        f"{result.write_count} writes)[/{THEME['dim']}]"
    )
    if result.error:
        console.print(f"[{THEME['danger']}]{result.error}[/{THEME['danger']}]")
    if result.changes:
        render_changes(result.changes)
