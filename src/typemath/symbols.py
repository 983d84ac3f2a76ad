"""Static lookup tables shared by the emitter, the reader and the calculator.

Every table is built once at import time and exposed read-only.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType


def _frozen(d: dict) -> MappingProxyType:
    return MappingProxyType(dict(d))


def _inverse(d: dict[str, str]) -> MappingProxyType:
    out: dict[str, str] = {}
    for key, value in d.items():
        # first glyph wins for commands that share a rendering
        out.setdefault(value, key)
    return MappingProxyType(out)


# ---------------------------------------------------------------------------
# Symbol <-> command
# ---------------------------------------------------------------------------

_GREEK = {
    "α": "alpha", "β": "beta", "γ": "gamma", "δ": "delta", "ϵ": "epsilon",
    "ε": "varepsilon", "ζ": "zeta", "η": "eta", "θ": "theta", "ϑ": "vartheta",
    "ι": "iota", "κ": "kappa", "λ": "lambda", "μ": "mu", "ν": "nu", "ξ": "xi",
    "π": "pi", "ϖ": "varpi", "ρ": "rho", "ϱ": "varrho", "σ": "sigma",
    "ς": "varsigma", "τ": "tau", "υ": "upsilon", "ϕ": "phi", "φ": "varphi",
    "χ": "chi", "ψ": "psi", "ω": "omega",
    "Γ": "Gamma", "Δ": "Delta", "Θ": "Theta", "Λ": "Lambda", "Ξ": "Xi",
    "Π": "Pi", "Σ": "Sigma", "Υ": "Upsilon", "Φ": "Phi", "Ψ": "Psi",
    "Ω": "Omega",
}

_OPERATORS = {
    "±": "pm", "∓": "mp", "×": "times", "÷": "div", "·": "cdot", "∙": "bullet",
    "∘": "circ", "⊕": "oplus", "⊖": "ominus", "⊗": "otimes", "⊙": "odot",
    "∧": "wedge", "∨": "vee", "¬": "neg", "￢": "neg", "∩": "cap", "∪": "cup",
    "∖": "setminus", "⋆": "star", "†": "dagger", "⨿": "amalg",
    "≤": "leq", "≥": "geq", "≠": "neq", "≡": "equiv", "≈": "approx",
    "∼": "sim", "≃": "simeq", "≅": "cong", "∝": "propto", "≪": "ll", "≫": "gg",
    "∈": "in", "∉": "notin", "∋": "ni", "⊂": "subset", "⊃": "supset",
    "⊆": "subseteq", "⊇": "supseteq", "⊢": "vdash", "⊣": "dashv",
    "⊨": "models", "⊥": "bot", "⊤": "top", "∣": "mid", "∥": "parallel",
    "→": "rightarrow", "←": "leftarrow", "↔": "leftrightarrow",
    "⇒": "Rightarrow", "⇐": "Leftarrow", "⇔": "Leftrightarrow",
    "↦": "mapsto", "↑": "uparrow", "↓": "downarrow", "↪": "hookrightarrow",
    "∀": "forall", "∃": "exists", "∄": "nexists", "∅": "emptyset",
    "∞": "infty", "∂": "partial", "∇": "nabla", "ℵ": "aleph", "ℏ": "hbar",
    "ℓ": "ell", "℘": "wp", "ℜ": "Re", "ℑ": "Im", "′": "prime",
    "…": "ldots", "⋯": "cdots", "⋮": "vdots", "⋱": "ddots",
    "∑": "sum", "∏": "prod", "∐": "coprod", "∫": "int", "∬": "iint",
    "∮": "oint", "⋃": "bigcup", "⋂": "bigcap", "⨁": "bigoplus",
    "⨂": "bigotimes", "⋁": "bigvee", "⋀": "bigwedge",
    "⟨": "langle", "⟩": "rangle", "⌊": "lfloor", "⌋": "rfloor",
    "⌈": "lceil", "⌉": "rceil", "‖": "|", "{": "{", "}": "}",
    "√": "surd",
}

SYMBOL_COMMANDS = _frozen({**_GREEK, **_OPERATORS})
COMMAND_SYMBOLS = _inverse(dict(SYMBOL_COMMANDS))

# Renderings that only apply while transcribing a proof tree.
PROOF_SYMBOLS = _frozen({
    "∧": "land",
    "∨": "lor",
    "¬": "lnot",
    "￢": "lnot",
})

# ---------------------------------------------------------------------------
# Brackets
# ---------------------------------------------------------------------------

BRACKET_PAIRS = _frozen({
    "": "",
    "(": ")",
    "[": "]",
    "{": "}",
    "|": "|",
    "‖": "‖",
    "⌊": "⌋",
    "⌈": "⌉",
    "⟨": "⟩",
    "√": "",
})
OPENING_BRACKETS = frozenset(BRACKET_PAIRS)
CLOSING_BRACKETS = frozenset(BRACKET_PAIRS.values())

RADICAL = "√"

# Shorthand matrix environments keyed by prefix+suffix.
MATRIX_ENVIRONMENTS = _frozen({
    "()": "pmatrix",
    "[]": "bmatrix",
    "{}": "Bmatrix",
    "||": "vmatrix",
    "‖‖": "Vmatrix",
    "": "matrix",
})

# ---------------------------------------------------------------------------
# Accents
# ---------------------------------------------------------------------------

# Single combining marks appended to a base character.
COMBINING_ACCENTS = _frozen({
    "\N{COMBINING GRAVE ACCENT}": "grave",
    "\N{COMBINING ACUTE ACCENT}": "acute",
    "\N{COMBINING CIRCUMFLEX ACCENT}": "hat",
    "\N{COMBINING TILDE}": "tilde",
    "\N{COMBINING MACRON}": "bar",
    "\N{COMBINING BREVE}": "breve",
    "\N{COMBINING DOT ABOVE}": "dot",
    "\N{COMBINING DIAERESIS}": "ddot",
    "\N{COMBINING RING ABOVE}": "mathring",
    "\N{COMBINING CARON}": "check",
    "\N{COMBINING RIGHT ARROW ABOVE}": "vec",
})

# Glyphs drawn over (or under) a whole accent slot.
ACCENTS_ABOVE = _frozen({
    "~": "widetilde",
    "^": "widehat",
    "←": "overleftarrow",
    "→": "overrightarrow",
    "¯": "overline",
    "⏞": "overbrace",
    **{mark: name for mark, name in COMBINING_ACCENTS.items()},
})
ACCENTS_BELOW = _frozen({
    "¯": "underline",
    "_": "underline",
    "⏟": "underbrace",
})

ACCENT_COMMANDS = frozenset(ACCENTS_ABOVE.values()) | frozenset(ACCENTS_BELOW.values())

# ---------------------------------------------------------------------------
# Font styles
# ---------------------------------------------------------------------------


class FontStyle(str, Enum):
    normal = "normal"
    bold = "bold"
    roman = "roman"
    script = "script"
    fraktur = "fraktur"
    blackboard = "blackboard"
    typewriter = "typewriter"


STYLE_COMMANDS = _frozen({
    FontStyle.bold: "mathbf",
    FontStyle.roman: "mathrm",
    FontStyle.script: "mathscr",
    FontStyle.fraktur: "mathfrak",
    FontStyle.blackboard: "mathbb",
    FontStyle.typewriter: "mathtt",
})

# Unicode "MATHEMATICAL <alphabet> ..." character-name prefixes.
UNICODE_ALPHABETS = _frozen({
    "MATHEMATICAL BOLD ": FontStyle.bold,
    "MATHEMATICAL DOUBLE-STRUCK ": FontStyle.blackboard,
    "MATHEMATICAL MONOSPACE ": FontStyle.typewriter,
    "MATHEMATICAL SCRIPT ": FontStyle.script,
    "MATHEMATICAL FRAKTUR ": FontStyle.fraktur,
    # Letterlike Symbols block holes in the alphabets above
    "DOUBLE-STRUCK ": FontStyle.blackboard,
    "BLACK-LETTER ": FontStyle.fraktur,
    "SCRIPT ": FontStyle.script,
})

# ---------------------------------------------------------------------------
# Reader argument obligations
# ---------------------------------------------------------------------------

# True = mandatory argument, False = optional ``[...]`` argument.
_ONE_ARG = (True,)

COMMAND_ARITY = _frozen({
    "newcommand": (True, False, True),
    "renewcommand": (True, False, True),
    "infer": (False, True, True),
    "frac": (True, True),
    "sqrt": (False, True),
    "left": _ONE_ARG,
    "right": _ONE_ARG,
    **{name: _ONE_ARG for name in STYLE_COMMANDS.values()},
    **{name: _ONE_ARG for name in ACCENT_COMMANDS},
})

# Environments that take leading mandatory arguments before the body.
ENVIRONMENT_ARITY = _frozen({
    "array": 1,
})
