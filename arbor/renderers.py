"""
Arbor help rendering.

render_help(command) prints a command's help with rich:
- usage line: route, [options], [command], argument definition
- description and (inherited) version
- options grid: flags, argument definition, description and markers
- sub-commands table (name, aliases, description)
- environment variables grid
- examples list

Palette keys
- usage-label, program-name, usage-section, description-section, version
- group-label, option-name, metavar, argument-description, marker
- children-title, children-table, children, children-description
- env-name, examples-label, examples-dot, example-name, example
- panel-title

Define __styles__ in __main__ to override any entry. Styling is applied only
when the command is colorful; fancy=True frames the output in a panel.
"""
from rich.box import ROUNDED
from rich.console import Console, Group
from rich.containers import Lines
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import split_arguments
from .internals import palette


def render_help(command, /, *, stderr=False):
    """
    Render help for command to stdout (or stderr when stderr=True).
    """
    console = Console(stderr=stderr)
    styles = palette({
        # === Head sections ===
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "usage-section": "bold #36C5F0",
        "description-section": "italic #A3A3A3",
        "version": "#737373",

        # === Options / environment ===
        "group-label": "bold #FFFFFF",
        "option-name": "bold #00E6FF",
        "metavar": "bold #FFD600",
        "argument-description": "#9CA3AF",
        "marker": "italic #737373",
        "env-name": "bold #22C55E",

        # === Children table ===
        "children-title": "bold #FFFFFF",
        "children-table": "#4B5563",
        "children": "bold #36C5F0",
        "children-description": "#9CA3AF",

        # === Examples ===
        "examples-label": "bold #22C55E",
        "examples-dot": "#22C55E dim",
        "example-name": "bold #E5E7EB",
        "example": "#E5E7EB",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    })

    def styler(style):
        return styles[style] if command.colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if command.colorful else Text(fragment.plain)
        return Text(str(fragment), styler(style))

    renders = []
    width = console.width - 4 * command.fancy
    route = " ".join(step.name for step in command.path)

    # Usage: route followed by wrapped placeholders, hanging under the route.
    usage = Text()
    usage.append("usage", styler("usage-label")).append(": ")
    usage.append(text(route, "program-name")).append(" ")
    offset = len(usage)

    inputs = []
    if command.get_options():
        inputs.append(text("[options]", "usage-section"))
    if command.get_commands():
        inputs.append(text("[command]", "usage-section"))
    if command.definition:
        inputs.append(text(command.definition, "metavar"))

    lines = Lines([inputs.pop(0)]) if inputs else Lines()
    for input in inputs:
        if len(lines[-1]) + 1 + len(input) > width - offset:
            lines.append(input)
        else:
            lines[-1].append(Text(" ") + input)
    if lines:
        usage.append(lines.pop(0))
    for line in lines:
        usage.append("\n").append(" " * offset).append(line)
    renders.append(usage.append("\n"))

    if command.descr:
        renders.append(text(command.descr, "description-section").append("\n"))

    if version := command.get_version():
        renders.append(Text.assemble(text("version", "group-label"), ": ", text(version, "version"), "\n"))

    if options := command.get_options():
        grid = Table.grid(padding=(0, 2))
        grid.add_column(no_wrap=True)
        grid.add_column(no_wrap=True)
        grid.add_column()
        for option in options:
            markers = []
            if option.global_:
                markers.append("global")
            if option.required:
                markers.append("required")
            if option.has_default:
                markers.append("default: %r" % (option.default,))
            descr = text(option.descr, "argument-description")
            if markers:
                descr = Text.assemble(descr, " " if descr else "", text("(%s)" % ", ".join(markers), "marker"))
            grid.add_row(
                Text(", ").join(text(switch, "option-name") for switch in option.switches),
                text(split_arguments(option.flags)[1], "metavar"),
                descr,
            )
        renders.append(Group(text("options", "group-label").append(":"), grid, Text("")))

    if commands := command.get_commands():
        table = Table(
            "name", "help",
            title=text("commands" if command.parent is None else "sub-commands", "children-title"),
            width=int(width * (2 / 3)),
            box=ROUNDED,
            style=styler("children-table"),
            header_style=styler("children-title"),
        )
        for child in commands:
            if child.descr:
                help = text(child.descr, "children-description")
            else:
                help = text("run '%s --help' for details" % " ".join(step.name for step in child.path),
                            "children-description")
            table.add_row(text(", ".join((child.name, *child.aliases)), "children"), help)
        renders.append(table)

    if envs := command.get_envs():
        grid = Table.grid(padding=(0, 2))
        grid.add_column(no_wrap=True)
        grid.add_column(no_wrap=True)
        grid.add_column()
        for env in envs:
            grid.add_row(
                Text(", ").join(text(name, "env-name") for name in env.names),
                text(env.definition, "metavar"),
                text(env.descr, "argument-description"),
            )
        renders.append(Group(text("environment variables", "group-label").append(":"), grid, Text("")))

    if examples := command.get_examples():
        padding = len(dot := text(" • ", "examples-dot"))
        section = Text()
        section.append(text("examples", "examples-label")).append(":\n")
        for example in examples:
            section.append(dot).append(text(example.name, "example-name")).append("\n")
            for line in text(example.descr, "example").wrap(console, max(width - padding, 1)):
                section.append(" " * padding).append(line).append("\n")
        renders.append(section)

    if isinstance(renders[-1], Text):
        renders[-1].rstrip()

    renderable = Group(*renders)
    if command.fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{command.name} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )

    console.print(renderable)


__all__ = (
    "render_help",
)
