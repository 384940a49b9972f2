#!/usr/bin/env python3
"""lsystem_curves.py

Plane curves from Lindenmayer systems, exported as SVG polylines.

Key features:
- Compact rule syntax: "X=>F[-X][+X], F=>FF".
- Simultaneous rewriting with per-rule placeholders (no rule-count ceiling).
- Stack-based turtle interpreter with configurable draw symbols.
- Branching via [ and ]; every branch closure starts a new polyline.
- JSON-based input configuration and a small preset catalog.

Run:
  python lsystem_curves.py render config.json output.svg
  python lsystem_curves.py expand config.json
  python lsystem_curves.py preset fern fern.json
  python lsystem_curves.py --help
"""

from __future__ import annotations

import argparse
import itertools
import json
import logging
import math
import os
import sys
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import asdict, dataclass, field, fields
from types import MappingProxyType
from typing import Any, cast

log = logging.getLogger(__name__)

Point = tuple[float, float]
Path = list[Point]

ARROW = "=>"
DRAW_SYMBOLS = frozenset("FGX")
MAX_ITERATIONS = 15

# Placeholders live in the BMP Private Use Area; user symbols may not.
_PLACEHOLDER_FIRST = 0xE000
_PLACEHOLDER_LAST = 0xF8FF


# -------------------------
# Errors / Validation
# -------------------------


class LSystemError(ValueError):
    pass


class ConfigError(LSystemError):
    pass


class MalformedRule(LSystemError):
    def __init__(self, clause: str, reason: str) -> None:
        super().__init__(f"malformed rule {clause!r}: {reason}")
        self.clause = clause


class PlaceholderCollision(LSystemError):
    def __init__(self, symbol: str, where: str) -> None:
        super().__init__(
            f"{where} contains reserved character U+{ord(symbol):04X}"
            if symbol
            else where
        )
        self.symbol = symbol


class UnbalancedBracket(LSystemError):
    """A ']' with no open '[' was found at ``index``.

    ``paths`` holds the polylines completed before the failure.
    """

    def __init__(self, index: int, paths: list[Path]) -> None:
        super().__init__(f"unbalanced ']' at index {index}")
        self.index = index
        self.paths = paths


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigError(msg)


def _as_float(x: Any, path: str) -> float:
    _require(
        isinstance(x, (int, float)) and not isinstance(x, bool),
        f"{path} must be a number",
    )
    return float(x)


def _as_int(x: Any, path: str) -> int:
    _require(
        isinstance(x, int) and not isinstance(x, bool), f"{path} must be an integer"
    )
    return int(x)


def _as_str(x: Any, path: str) -> str:
    _require(isinstance(x, str), f"{path} must be a string")
    return cast(str, x)


def _as_bool(x: Any, path: str) -> bool:
    _require(isinstance(x, bool), f"{path} must be a boolean")
    return cast(bool, x)


def _as_dict(x: Any, path: str) -> dict[str, Any]:
    _require(isinstance(x, dict), f"{path} must be an object")
    return cast(dict[str, Any], x)


def _is_reserved(ch: str) -> bool:
    return _PLACEHOLDER_FIRST <= ord(ch) <= _PLACEHOLDER_LAST


def _check_unreserved(text: str, where: str) -> None:
    for ch in text:
        if _is_reserved(ch):
            raise PlaceholderCollision(ch, where)


# -------------------------
# Grammar
# -------------------------


def parse_rules(rule_spec: str) -> dict[str, str]:
    """Parse ``"A=>AB, B=>A"`` into ``{"A": "AB", "B": "A"}``.

    Clause order is kept; expansion applies rules in that order.
    """
    rules: dict[str, str] = {}
    for raw in rule_spec.split(","):
        clause = raw.strip()
        if not clause:
            raise MalformedRule(raw, "empty clause")
        symbol, rest = clause[0], clause[1:].lstrip()
        if not rest.startswith(ARROW):
            raise MalformedRule(clause, f"expected '{ARROW}' after {symbol!r}")
        if symbol in rules:
            raise MalformedRule(clause, f"duplicate rule for {symbol!r}")
        rules[symbol] = rest[len(ARROW) :].strip()
    return rules


@dataclass(frozen=True)
class Grammar:
    rule_spec: str
    axiom: str
    rules: Mapping[str, str]
    angle: float  # radians
    segment_length: float
    iteration_count: int

    def __post_init__(self) -> None:
        # Read-only snapshot; the checks below must hold for the grammar's life.
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))
        _require(len(self.axiom) > 0, "axiom must be non-empty")
        _require(
            isinstance(self.iteration_count, int)
            and not isinstance(self.iteration_count, bool)
            and self.iteration_count >= 0,
            "iteration_count must be an integer >= 0",
        )
        _require(math.isfinite(self.segment_length), "segment_length must be finite")
        _require(math.isfinite(self.angle), "angle must be finite")
        for symbol in self.rules:
            _require(
                isinstance(symbol, str) and len(symbol) == 1,
                "rule symbols must be single characters",
            )

        # Reject anything that could be mistaken for a placeholder, so a
        # constructed Grammar always expands correctly.
        n_slots = _PLACEHOLDER_LAST - _PLACEHOLDER_FIRST + 1
        if len(self.rules) > n_slots:
            raise PlaceholderCollision(
                "", f"grammar has {len(self.rules)} rules; at most {n_slots} supported"
            )
        _check_unreserved(self.axiom, "axiom")
        for symbol, replacement in self.rules.items():
            _check_unreserved(symbol, "rule symbol")
            _check_unreserved(replacement, f"replacement for {symbol!r}")

    @classmethod
    def from_spec(
        cls,
        rule_spec: str,
        axiom: str,
        angle_degrees: float,
        segment_length: float,
        iteration_count: int,
    ) -> Grammar:
        return cls(
            rule_spec=rule_spec,
            axiom=axiom,
            rules=parse_rules(rule_spec),
            angle=angle_degrees * math.pi / 180.0,
            segment_length=float(segment_length),
            iteration_count=iteration_count,
        )

    @property
    def angle_degrees(self) -> float:
        return self.angle * 180.0 / math.pi

    def placeholders(self) -> dict[str, str]:
        return {
            symbol: chr(_PLACEHOLDER_FIRST + i) for i, symbol in enumerate(self.rules)
        }

    def expand(self) -> str:
        return expand(self)


def _rewrite(s: str, rules: Mapping[str, str], placeholders: dict[str, str]) -> str:
    # Phase 1 hides every rewritable symbol behind its placeholder so that
    # phase 2 output is never rewritten again in the same round.
    for symbol, ph in placeholders.items():
        s = s.replace(symbol, ph)
    for symbol, ph in placeholders.items():
        s = s.replace(ph, rules[symbol])
    return s


def derivations(grammar: Grammar) -> Iterator[str]:
    """Yield the axiom and then the string after each rewriting round."""
    placeholders = grammar.placeholders()
    s = grammar.axiom
    yield s
    for n in range(1, grammar.iteration_count + 1):
        s = _rewrite(s, grammar.rules, placeholders)
        log.debug("round %d: %d symbols", n, len(s))
        yield s


def expand(grammar: Grammar) -> str:
    s = grammar.axiom
    for s in derivations(grammar):
        pass
    return s


def iter_symbols(grammar: Grammar) -> Iterator[str]:
    """Yield the derived string one symbol at a time.

    Same output as ``expand`` but memory is bounded by the rewrite depth,
    not the derived length.
    """
    rules = grammar.rules
    depth_limit = grammar.iteration_count
    stack: list[tuple[Iterator[str], int]] = [(iter(grammar.axiom), 0)]

    while stack:
        symbols, depth = stack[-1]
        sym = next(symbols, None)
        if sym is None:
            stack.pop()
        elif depth < depth_limit and sym in rules:
            stack.append((iter(rules[sym]), depth + 1))
        else:
            yield sym


# -------------------------
# Turtle interpreter
# -------------------------


def rotate(heading: Point, theta: float) -> Point:
    hx, hy = heading
    c, s = math.cos(theta), math.sin(theta)
    return (hx * c - hy * s, hx * s + hy * c)


@dataclass
class Turtle:
    position: Point = (0.0, 0.0)
    heading: Point = (0.0, 1.0)
    branch_stack: list[tuple[Point, Point]] = field(default_factory=list)
    current_path: Path = field(default_factory=list)
    paths: list[Path] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.current_path:
            self.current_path.append(self.position)

    def forward(self, length: float) -> None:
        x, y = self.position
        dx, dy = self.heading
        self.position = (x + dx * length, y + dy * length)
        self.current_path.append(self.position)

    def turn(self, theta: float) -> None:
        self.heading = rotate(self.heading, theta)

    def push(self) -> None:
        # The branch keeps extending the current polyline; only a pop splits.
        self.branch_stack.append((self.position, self.heading))

    def pop(self) -> None:
        self.paths.append(self.current_path)
        self.position, self.heading = self.branch_stack.pop()
        self.current_path = [self.position]

    def finish(self) -> list[Path]:
        self.paths.append(self.current_path)
        self.current_path = []
        return self.paths


def interpret(
    derived: Iterable[str],
    angle_radians: float,
    segment_length: float,
    *,
    draw_symbols: Iterable[str] = DRAW_SYMBOLS,
) -> list[Path]:
    """Interpret a derived string to polylines.

    Symbols:
      - any of ``draw_symbols``: move forward and extend the current polyline
      - ``+``: rotate by -angle
      - ``-``: rotate by +angle
      - ``[``: save position and heading
      - ``]``: close the current polyline, restore the saved state and start
        a new polyline at the restored position
      - anything else: ignored

    The trailing polyline is always emitted, even if it is a single point.
    """
    draw = frozenset(draw_symbols)
    turtle = Turtle()

    for index, sym in enumerate(derived):
        if sym in draw:
            turtle.forward(segment_length)
        elif sym == "+":
            turtle.turn(-angle_radians)
        elif sym == "-":
            turtle.turn(angle_radians)
        elif sym == "[":
            turtle.push()
        elif sym == "]":
            if not turtle.branch_stack:
                raise UnbalancedBracket(index, turtle.paths)
            turtle.pop()

    if turtle.branch_stack:
        log.debug("%d branch(es) left open at end of input", len(turtle.branch_stack))
    paths = turtle.finish()
    log.debug("interpreted %d path(s)", len(paths))
    return paths


def generate(
    grammar: Grammar, *, draw_symbols: Iterable[str] = DRAW_SYMBOLS
) -> list[Path]:
    return interpret(
        expand(grammar),
        grammar.angle,
        grammar.segment_length,
        draw_symbols=draw_symbols,
    )


# -------------------------
# SVG writing
# -------------------------


@dataclass(frozen=True)
class SvgStyle:
    stroke: str = "#000"
    stroke_width: float = 1.0
    fill: str = "none"
    stroke_linecap: str = "round"
    stroke_linejoin: str = "round"


@dataclass(frozen=True)
class SvgOptions:
    margin: float = 10.0
    precision: int = 3
    flip_y: bool = True
    width: float | None = None
    height: float | None = None
    scale: float = 1.0
    style: SvgStyle = SvgStyle()
    background: str | None = None


def _ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)


def transform_paths(
    paths: list[Path], scale: float, origin: Point = (0.0, 0.0)
) -> list[Path]:
    ox, oy = origin
    return [[(ox + x * scale, oy + y * scale) for x, y in pl] for pl in paths]


def compute_bounds(paths: list[Path]) -> tuple[float, float, float, float]:
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for pl in paths:
        for x, y in pl:
            if x < min_x:
                min_x = x
            if x > max_x:
                max_x = x
            if y < min_y:
                min_y = y
            if y > max_y:
                max_y = y
    _require(min_x <= max_x, "No drawable geometry produced.")
    return (min_x, min_y, max_x, max_y)


def _fmt(x: float, precision: int) -> str:
    # Normalise -0.0 so it never produces "-0" in SVG output.
    if not x:
        x = 0.0
    s = f"{x:.{precision}f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    if s in ("", "-0"):
        s = "0"
    return s


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _attrs(**attrs: Any) -> str:
    """Render keyword arguments as SVG attributes; ``None`` values are skipped."""
    return " ".join(
        f'{name.replace("_", "-")}="{value}"'
        for name, value in attrs.items()
        if value is not None
    )


def svg_document(
    paths: list[Path], options: SvgOptions = SvgOptions(), title: str | None = None
) -> str:
    """Lay out ``paths`` as an SVG document, one <polyline> per path.

    The viewBox hugs the (scaled) geometry plus ``options.margin``. Single
    point paths are kept; they show up as zero-length strokes.
    """

    def num(value: float) -> str:
        return _fmt(value, options.precision)

    if options.scale != 1.0:
        paths = transform_paths(paths, options.scale)

    pad = options.margin
    left, bottom, right, top = compute_bounds(paths)
    left, bottom, right, top = left - pad, bottom - pad, right + pad, top + pad
    w, h = right - left, top - bottom
    _require(
        w > 0 and h > 0,
        "Degenerate bounds after margin (width or height is zero). "
        "Set svg.margin > 0 to render collinear or single-point geometry.",
    )

    root = _attrs(
        xmlns="http://www.w3.org/2000/svg",
        version="1.1",
        viewBox=" ".join(num(v) for v in (left, bottom, w, h)),
        width=num(options.width) if options.width else None,
        height=num(options.height) if options.height else None,
    )
    doc = ['<?xml version="1.0" encoding="UTF-8"?>', f"<svg {root}>"]
    if title:
        doc.append(f"  <title>{_escape(title)}</title>")
    if options.background and options.background.lower() != "none":
        rect = _attrs(
            x=num(left),
            y=num(bottom),
            width=num(w),
            height=num(h),
            fill=options.background,
        )
        doc.append(f"  <rect {rect} />")

    stroke = _attrs(
        **{**asdict(options.style), "stroke_width": num(options.style.stroke_width)}
    )
    polylines = [
        '<polyline points="{}" {} />'.format(
            " ".join(f"{num(x)},{num(y)}" for x, y in pl), stroke
        )
        for pl in paths
    ]

    if options.flip_y:
        # Turtle y points up, SVG y points down: mirror about the box centre.
        doc.append(f'  <g transform="translate(0,{num(bottom + top)}) scale(1,-1)">')
        doc.extend(f"    {p}" for p in polylines)
        doc.append("  </g>")
    else:
        doc.extend(f"  {p}" for p in polylines)

    doc.append("</svg>")
    return "\n".join(doc) + "\n"


def write_svg(
    paths: list[Path],
    *,
    out_path: str,
    options: SvgOptions = SvgOptions(),
    title: str | None = None,
) -> None:
    document = svg_document(paths, options, title)
    _ensure_parent_dir(out_path)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(document)
    log.debug("wrote %d polyline(s) to %s", len(paths), out_path)


# -------------------------
# Config parsing
# -------------------------


@dataclass(frozen=True)
class LSystemConfig:
    name: str
    grammar: Grammar
    draw_symbols: frozenset[str]
    svg: SvgOptions


def parse_angle(text: str, default: float = 0.0) -> float:
    """Parse user-typed degrees, falling back to ``default`` on bad input."""
    try:
        value = float(text)
    except (TypeError, ValueError):
        log.warning("could not parse angle %r; using %s", text, default)
        return default
    if not math.isfinite(value):
        log.warning("angle %r is not finite; using %s", text, default)
        return default
    return value


def _build_grammar(
    rule_spec: str,
    axiom: str,
    angle_deg: float,
    length: float,
    iterations: int,
) -> Grammar:
    try:
        return Grammar.from_spec(rule_spec, axiom, angle_deg, length, iterations)
    except ConfigError:
        raise
    except LSystemError as e:
        raise ConfigError(f"rules: {e}") from e


def parse_config(obj: dict[str, Any]) -> LSystemConfig:
    obj = _as_dict(obj, "root")

    rule_spec = _as_str(obj.get("rules", ""), "rules")
    _require(len(rule_spec.strip()) > 0, "rules must be non-empty")
    name = _as_str(obj.get("name", rule_spec), "name")
    axiom = _as_str(obj.get("axiom", ""), "axiom")
    _require(len(axiom) > 0, "axiom must be non-empty")

    iterations = _as_int(obj.get("iterations", 0), "iterations")
    _require(
        0 <= iterations <= MAX_ITERATIONS,
        f"iterations must be between 0 and {MAX_ITERATIONS}",
    )

    turtle = _as_dict(obj.get("turtle", {}), "turtle")
    angle_deg = _as_float(turtle.get("angle", 90), "turtle.angle")
    length = _as_float(turtle.get("length", 10), "turtle.length")
    _require(math.isfinite(length), "turtle.length must be finite")
    draw = _as_str(turtle.get("draw", "".join(sorted(DRAW_SYMBOLS))), "turtle.draw")

    grammar = _build_grammar(rule_spec, axiom, angle_deg, length, iterations)

    return LSystemConfig(
        name=name,
        grammar=grammar,
        draw_symbols=frozenset(draw),
        svg=_parse_svg_options(_as_dict(obj.get("svg", {}), "svg")),
    )


def _positive(x: Any, path: str) -> float:
    value = _as_float(x, path)
    _require(value > 0, f"{path} must be > 0")
    return value


def _parse_svg_options(svg: dict[str, Any]) -> SvgOptions:
    defaults = SvgOptions()
    precision = _as_int(svg.get("precision", defaults.precision), "svg.precision")
    _require(0 <= precision <= 10, "svg.precision must be between 0 and 10")

    width = svg.get("width")
    height = svg.get("height")
    background = svg.get("background")
    if background is not None:
        background = _as_str(background, "svg.background")

    # Every style field is a string except the stroke width.
    style_obj = _as_dict(svg.get("style", {}), "svg.style")
    style: dict[str, Any] = {}
    for f in fields(SvgStyle):
        path = f"svg.style.{f.name}"
        value = style_obj.get(f.name, getattr(defaults.style, f.name))
        check = _as_float if f.name == "stroke_width" else _as_str
        style[f.name] = check(value, path)

    return SvgOptions(
        margin=_as_float(svg.get("margin", defaults.margin), "svg.margin"),
        precision=precision,
        flip_y=_as_bool(svg.get("flip_y", defaults.flip_y), "svg.flip_y"),
        width=None if width is None else _positive(width, "svg.width"),
        height=None if height is None else _positive(height, "svg.height"),
        scale=_positive(svg.get("scale", defaults.scale), "svg.scale"),
        style=SvgStyle(**style),
        background=background,
    )


def load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        try:
            return cast(dict[str, Any], json.load(f))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e


def dump_json(obj: dict[str, Any], path: str) -> None:
    _ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
        f.write("\n")


# -------------------------
# Presets
# -------------------------

# name -> (rules, axiom, angle in degrees)
PRESETS: dict[str, tuple[str, str, float]] = {
    "fern": ("X=>F-[[X]+X]+F[+FX]-X, F=>FF", "X", 22.5),
    "bricks": ("F=>FF+F-F+F+FF", "F+F+F+F", 90.0),
    "hilbert": ("A=>+BF-AFA-FB+, B=>-AF+BFB+FA-", "A", 90.0),
    "dragon": ("F=>F+X, X=>F-X", "F", 90.0),
    "koch": ("F=>F+F--F+F", "F", 60.0),
    "sierpinski": ("F=>G-F-G, G=>F+G+F", "F", 60.0),
}


def preset_config(name: str, iterations: int = 4) -> dict[str, Any]:
    if name not in PRESETS:
        raise ConfigError(
            f"unknown preset {name!r}; choose from {', '.join(sorted(PRESETS))}"
        )
    rules, axiom, angle = PRESETS[name]
    cfg: dict[str, Any] = {
        "name": rules,
        "rules": rules,
        "axiom": axiom,
        "iterations": iterations,
        "turtle": {"angle": angle, "length": 10},
        "svg": {"margin": 10, "precision": 3, "flip_y": True},
    }
    # Presets must always parse cleanly.
    parse_config(cfg)
    return cfg


# -------------------------
# CLI / Help
# -------------------------

HELP_EPILOG = r"""
INPUT JSON SYNTAX (render, validate, expand)

Top-level keys

  name: string (optional, defaults to the rules string)
      Written into the SVG <title>.

  rules: string (required)
      Comma-separated clauses "<symbol>=><replacement>", e.g.
          "X=>F[-X][+X], F=>FF"
      Each symbol is a single character and may appear once. All rules are
      applied simultaneously in each round.

  axiom: string (required)
      The initial word.

  iterations: integer 0..15 (default 0)
      Number of rewriting rounds.

  turtle: object (optional)

    turtle.angle: number (default 90)
        Turn angle in degrees. '+' turns clockwise, '-' counter-clockwise.

    turtle.length: number (default 10)
        Length of one forward step.

    turtle.draw: string (default "FGX")
        Symbols that move forward and draw. '[' saves the turtle, ']'
        restores it and starts a new polyline. Other symbols are ignored.

The turtle starts at (0,0) facing +Y.

SVG options

  svg.margin: number (default 10)
  svg.precision: integer 0..10 (default 3)
  svg.flip_y: boolean (default true)
  svg.scale: number > 0 (default 1)
  svg.width / svg.height: number (optional)
  svg.background: string color (optional)
  svg.style: object (stroke, stroke_width, fill, stroke_linecap,
             stroke_linejoin)

Example (Koch curve):

    {
      "rules": "F=>F+F--F+F",
      "axiom": "F",
      "iterations": 4,
      "turtle": {"angle": 60, "length": 10}
    }

PRESETS

  python lsystem_curves.py preset fern fern.json
"""


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lsystem_curves.py",
        description="L-system plane curve generator that outputs SVG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )
    p.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    pr = sub.add_parser(
        "render",
        help="Render an L-system JSON config to an SVG file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pr.add_argument("config", help="Path to the input JSON config.")
    pr.add_argument("output", help="Path to write the SVG output.")
    pr.add_argument(
        "--iterations", type=int, default=None, help="Override config iterations."
    )
    pr.add_argument(
        "--angle",
        default=None,
        help="Override turtle.angle in degrees (unparseable values become 0).",
    )

    pv = sub.add_parser(
        "validate",
        help="Validate a JSON config and print a brief summary.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pv.add_argument("config", help="Path to the input JSON config.")

    pe = sub.add_parser(
        "expand",
        help="Print the derived string of a JSON config.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pe.add_argument("config", help="Path to the input JSON config.")
    pe.add_argument(
        "--max-chars",
        type=int,
        default=200,
        help="Truncate the printed string to this many characters.",
    )

    pp = sub.add_parser(
        "preset",
        help="Write a preset JSON config.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pp.add_argument("name", choices=sorted(PRESETS), help="Preset name.")
    pp.add_argument("output", help="Where to write the JSON file.")
    pp.add_argument("--iterations", type=int, default=4)

    return p


# -------------------------
# Commands
# -------------------------


def _apply_overrides(
    cfg_obj: dict[str, Any], iterations: int | None, angle_text: str | None
) -> dict[str, Any]:
    cfg_obj = dict(cfg_obj)
    if iterations is not None:
        cfg_obj["iterations"] = iterations
    if angle_text is not None:
        turtle = dict(_as_dict(cfg_obj.get("turtle", {}), "turtle"))
        turtle["angle"] = parse_angle(angle_text)
        cfg_obj["turtle"] = turtle
    return cfg_obj


def cmd_render(
    config_path: str,
    output_path: str,
    iterations: int | None = None,
    angle_text: str | None = None,
) -> None:
    cfg_obj = _apply_overrides(load_json(config_path), iterations, angle_text)
    cfg = parse_config(cfg_obj)

    paths = generate(cfg.grammar, draw_symbols=cfg.draw_symbols)
    write_svg(paths, out_path=output_path, options=cfg.svg, title=cfg.name)


_VALIDATE_SYMBOL_LIMIT = 100_000


def cmd_validate(config_path: str) -> None:
    cfg = parse_config(load_json(config_path))
    g = cfg.grammar

    print(f"name: {cfg.name}")
    print(f"axiom length: {len(g.axiom)}")
    print(f"iterations: {g.iteration_count}")
    print(f"rules: {len(g.rules)}")
    print(
        f"turtle: angle={g.angle_degrees:g} length={g.segment_length:g} "
        f"draw={''.join(sorted(cfg.draw_symbols))}"
    )
    print(
        f"svg: margin={cfg.svg.margin} precision={cfg.svg.precision} "
        f"flip_y={cfg.svg.flip_y} scale={cfg.svg.scale}"
    )

    # Stream the expansion so an exponential grammar never gets materialised.
    sample = "".join(itertools.islice(iter_symbols(g), _VALIDATE_SYMBOL_LIMIT + 1))
    truncated = len(sample) > _VALIDATE_SYMBOL_LIMIT
    sample = sample[:_VALIDATE_SYMBOL_LIMIT]
    try:
        paths = interpret(
            sample, g.angle, g.segment_length, draw_symbols=cfg.draw_symbols
        )
    except UnbalancedBracket as e:
        raise ConfigError(f"derived string is malformed: {e}") from e
    sym_label = f"{_VALIDATE_SYMBOL_LIMIT}+" if truncated else str(len(sample))
    print(f"symbols: {sym_label}")
    print(f"paths: {len(paths)}")
    if truncated:
        print(
            f"warning: expansion exceeds {_VALIDATE_SYMBOL_LIMIT} symbols; "
            "geometry stats are based on the first portion only"
        )


def cmd_expand(config_path: str, max_chars: int) -> None:
    cfg = parse_config(load_json(config_path))
    s = ""
    for n, s in enumerate(derivations(cfg.grammar)):
        print(f"round {n}: {len(s)} symbols")
    if max_chars >= 0 and len(s) > max_chars:
        print(s[:max_chars] + "...")
    else:
        print(s)


def cmd_preset(name: str, output_path: str, iterations: int) -> None:
    dump_json(preset_config(name, iterations), output_path)


def main(argv: list[str] | None = None) -> int:
    ap = build_argparser()
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.cmd == "render":
            cmd_render(args.config, args.output, args.iterations, args.angle)
        elif args.cmd == "validate":
            cmd_validate(args.config)
        elif args.cmd == "expand":
            cmd_expand(args.config, args.max_chars)
        elif args.cmd == "preset":
            cmd_preset(args.name, args.output, args.iterations)
        else:
            raise AssertionError("unreachable")
    except LSystemError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
