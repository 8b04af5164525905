"""
clibu help rendering.

- render_help(config): root help (USAGE, COMMANDS, GLOBAL OPTIONS).
- render_command_help(config, path): help for a command path (COMMAND, USAGE,
  SUBCOMMANDS, inherited GLOBAL OPTIONS, OPTIONS).
- format_help(config, path=()): plain-text variant of the above.

Both renderers return rich renderables (Text, or a Panel when fancy=True) and
read only the normalized configuration. Layout is deterministic: two-column
rows padded to the widest left column, no terminal-width dependent wrapping.

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When colorful is False, styling is suppressed.
"""
from collections import defaultdict

from rich.panel import Panel
from rich.text import Text

from .config import define_config
from .graph import build, resolve


def _palette(colorful, /):
    styles = defaultdict(str, {
        "program-name": "bold #FF4D94",  # magenta-pink brand
        "version": "#A3A3A3",
        "section-label": "bold #FFFFFF",
        "usage": "bold #36C5F0",  # sky-blue
        "command": "bold #36C5F0",
        "command-description": "#9CA3AF",
        "option-name": "bold #00E6FF",  # cyan
        "alias": "#00E6FF",
        "option-description": "#9CA3AF",
        "meta": "#FFD600 dim",  # amber
        "footer": "#737373",
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    return styler


def _display(value, /):
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _rows(rows, /, pad=2, gap=2):
    """
    Align (left, right) Text pairs into lines; right may be empty.
    """
    width = max((len(left) for left, _ in rows), default=0)
    lines = []
    for left, right in rows:
        line = Text(" " * pad) + left
        if right:
            line += Text(" " * (width - len(left) + gap)) + right
        lines.append(line)
    return lines


def _commands(commands, styler, /):
    return _rows([
        (Text(name, styler("command")), Text(definition.description or "", styler("command-description")))
        for name, definition in commands.items()
    ])


def _options(record, styler, /):
    rows = []
    for name, schema in record.items():
        head = Text(f"--{name}", styler("option-name"))
        if schema.alias:
            head += Text(" (") + Text(",".join(f"-{alias}" for alias in schema.alias), styler("alias")) + Text(")")

        meta = []
        if schema.required:
            meta.append("required")
        if schema.kind == "enum":
            meta.append(f"choices: {"|".join(schema.choices)}")
        if schema.default is not None:
            meta.append(f"default: {_display(schema.default)}")

        right = Text(" ").join(
            part for part in (
                Text(schema.description, styler("option-description")) if schema.description else None,
                Text(f"[{", ".join(meta)}]", styler("meta")) if meta else None,
            ) if part is not None
        )
        rows.append((head, right))
    return _rows(rows)


def _header(config, styler, /):
    header = Text(config.name, styler("program-name"))
    if config.version:
        header += Text(f" v{config.version}", styler("version"))
    return header


def _section(label, styler, /):
    return Text(label, styler("section-label"))


def _finish(lines, config, fancy, styler, /):
    renderable = Text("\n").join(lines)
    if fancy:
        return Panel(
            renderable,
            title=Text.assemble("[", " ", f"{config.name} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )
    return renderable


def render_help(config, /, *, colorful=True, fancy=False):
    """
    Render the top-level help for config.
    """
    config = define_config(config)
    styler = _palette(colorful)

    lines = [
        _header(config, styler),
        Text(""),
        _section("USAGE:", styler),
        Text("  ") + Text(f"{config.name} <command> [options]", styler("usage")),
        Text(""),
        _section("COMMANDS:", styler),
        *_commands(config.commands, styler),
        Text(""),
    ]
    if config.options:
        lines += [_section("GLOBAL OPTIONS:", styler), *_options(config.options, styler), Text("")]
    lines.append(Text("(Use <command> --help for option details)", styler("footer")))
    return _finish(lines, config, fancy, styler)


def render_command_help(config, path, /, *, colorful=True, fancy=False):
    """
    Render the help of the command reached by path.

    Global options are listed only when the command inherits them, minus the
    ones the command redeclares.

    Raises
    - CommandNotFoundError: path does not resolve.
    """
    config = define_config(config)
    styler = _palette(colorful)
    path = tuple(path)
    target = resolve(build(config), path).target
    route = " ".join(path)

    lines = [
        _header(config, styler),
        Text(""),
        _section("COMMAND:", styler),
        *_rows([(Text(route, styler("command")), Text(target.description or "", styler("command-description")))]),
        Text(""),
        _section("USAGE:", styler),
        Text("  ") + Text(f"{config.name} {route} [options]", styler("usage")),
        Text(""),
    ]
    if target.children:
        lines += [_section("SUBCOMMANDS:", styler), *_commands(target.definition.commands, styler), Text("")]

    if config.options and target.inherit_global:
        inherited = {name: schema for name, schema in config.options.items() if name not in target.options}
        if inherited:
            lines += [_section("GLOBAL OPTIONS:", styler), *_options(inherited, styler), Text("")]

    if target.options:
        lines += [_section("OPTIONS:", styler), *_options(target.options, styler)]
    else:
        lines.append(Text("(No options)"))
    return _finish(lines, config, fancy, styler)


def format_help(config, path=(), /):
    """
    Plain-text help: root help for an empty path, command help otherwise.
    """
    if not path:
        return render_help(config, colorful=False).plain
    return render_command_help(config, path, colorful=False).plain


__all__ = (
    "render_help",
    "render_command_help",
    "format_help",
)
