"""
Extension-based technology classification.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional, Set, Tuple

# Extension -> technology identifiers. Keys are lower-case.
EXTENSION_TO_TECH: Dict[str, List[str]] = {
    # JavaScript/TypeScript
    ".js": ["javascript"],
    ".mjs": ["javascript"],
    ".cjs": ["javascript"],
    ".jsx": ["javascript", "react"],
    ".ts": ["typescript"],
    ".tsx": ["typescript", "react"],
    ".mts": ["typescript"],
    ".cts": ["typescript"],
    ".d.ts": ["typescript"],

    # Python
    ".py": ["python"],
    ".pyw": ["python"],
    ".pyi": ["python"],
    ".ipynb": ["python", "jupyter"],

    # JVM
    ".java": ["java"],
    ".kt": ["kotlin"],
    ".kts": ["kotlin"],
    ".scala": ["scala"],
    ".sc": ["scala"],
    ".clj": ["clojure"],
    ".cljs": ["clojure"],
    ".cljc": ["clojure"],
    ".groovy": ["groovy"],
    ".gvy": ["groovy"],

    # .NET
    ".cs": ["csharp"],
    ".csx": ["csharp"],
    ".fs": ["fsharp"],
    ".fsx": ["fsharp"],
    ".fsi": ["fsharp"],
    ".vb": ["vb"],

    # Systems
    ".go": ["go"],
    ".rs": ["rust"],
    ".c": ["c"],
    ".h": ["c"],
    ".cpp": ["cpp"],
    ".cc": ["cpp"],
    ".cxx": ["cpp"],
    ".hpp": ["cpp"],
    ".hxx": ["cpp"],
    ".zig": ["zig"],
    ".nim": ["nim"],
    ".nims": ["nim"],

    # Scripting
    ".rb": ["ruby"],
    ".rake": ["ruby"],
    ".erb": ["ruby", "rails"],
    ".php": ["php"],
    ".phtml": ["php"],
    ".lua": ["lua"],
    ".pl": ["perl"],
    ".pm": ["perl"],

    # Apple
    ".swift": ["swift"],
    ".m": ["objectivec"],
    ".mm": ["objectivec"],

    ".dart": ["dart", "flutter"],

    # Functional and scientific
    ".ex": ["elixir"],
    ".exs": ["elixir"],
    ".erl": ["erlang"],
    ".hrl": ["erlang"],
    ".hs": ["haskell"],
    ".lhs": ["haskell"],
    ".ml": ["ocaml"],
    ".mli": ["ocaml"],
    ".jl": ["julia"],
    ".r": ["r"],
    ".rmd": ["r"],

    # Component templates
    ".vue": ["vue"],
    ".svelte": ["svelte"],
    ".astro": ["astro"],
    ".mdx": ["markdown", "mdx"],
    ".marko": ["marko"],

    # Templating
    ".ejs": ["ejs"],
    ".hbs": ["handlebars"],
    ".handlebars": ["handlebars"],
    ".pug": ["pug"],
    ".jade": ["pug"],
    ".njk": ["nunjucks"],
    ".twig": ["twig"],
    ".blade.php": ["laravel"],
    ".jinja": ["jinja"],
    ".jinja2": ["jinja"],

    # Smart contracts
    ".sol": ["solidity", "ethereum"],
    ".vy": ["vyper", "ethereum"],

    # Config and infrastructure
    ".tf": ["terraform"],
    ".tfvars": ["terraform"],
    ".hcl": ["terraform"],
    ".dockerfile": ["docker"],
    ".yml": ["yaml"],
    ".yaml": ["yaml"],
    ".toml": ["toml"],

    # Data and schemas
    ".sql": ["sql"],
    ".prisma": ["prisma"],
    ".graphql": ["graphql"],
    ".gql": ["graphql"],
    ".proto": ["grpc", "protobuf"],

    # Styles
    ".css": ["css"],
    ".scss": ["sass"],
    ".sass": ["sass"],
    ".less": ["less"],
    ".styl": ["stylus"],

    # Shell
    ".sh": ["bash"],
    ".bash": ["bash"],
    ".zsh": ["zsh"],
    ".fish": ["fish"],
    ".ps1": ["powershell"],
    ".psm1": ["powershell"],

    # Mobile
    ".gradle": ["android"],
    ".xcodeproj": ["ios"],

    # Low level
    ".wasm": ["webassembly"],
    ".wat": ["webassembly"],
    ".asm": ["assembly"],
    ".s": ["assembly"],
}

# Suffixes that name a file's role rather than its language
_ROLE_SUFFIXES = (".test", ".spec")
_SCRIPT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")

MAX_HISTOGRAM_EXTENSION_LENGTH = 10
TOP_EXTENSIONS = 10


def extract_extension(path: str) -> Optional[str]:
    """
    Return the normalized extension of ``path``, or None if it has none.

    ``.blade.php`` and ``.d.ts`` are kept whole; ``foo.test.ts`` and
    ``foo.spec.js`` reduce to the script extension. Dotfiles such as
    ``.gitignore`` have no extension.
    """
    filename = path.rsplit("/", 1)[-1]
    lowered = filename.lower()

    if ".blade.php" in lowered:
        return ".blade.php"
    if lowered.endswith(".d.ts"):
        return ".d.ts"
    for script_ext in _SCRIPT_EXTENSIONS:
        for role in _ROLE_SUFFIXES:
            if lowered.endswith(role + script_ext):
                return script_ext

    last_dot = filename.rfind(".")
    if last_dot > 0:
        return lowered[last_dot:]
    return None


def count_extensions(paths: Iterable[str]) -> Counter:
    counts = Counter()
    for path in paths:
        ext = extract_extension(path)
        if ext:
            counts[ext] += 1
    return counts


def classify_by_extension(sampled_paths: Iterable[str], min_count: int = 1) -> Set[str]:
    """
    Map the extensions of ``sampled_paths`` onto technology identifiers.

    Args:
        sampled_paths: Usually the output of ``sample_files``
        min_count: Occurrences an extension needs before it contributes

    Returns:
        Union of the identifiers of every contributing extension
    """
    detected = set()
    for ext, count in count_extensions(sampled_paths).items():
        if count >= min_count:
            detected.update(EXTENSION_TO_TECH.get(ext, ()))
    return detected


def top_extensions(paths: Iterable[str], limit: int = TOP_EXTENSIONS) -> List[Tuple[str, int]]:
    """
    Most frequent raw extensions over the full listing, most common first.

    Uses the text after the last dot of the file name, so ``app.test.ts``
    counts as ``.ts``; overly long suffixes are ignored.
    """
    counts = Counter()
    for path in paths:
        filename = path.rsplit("/", 1)[-1]
        if "." not in filename:
            continue
        ext = filename.rsplit(".", 1)[-1].lower()
        if ext and len(ext) <= MAX_HISTOGRAM_EXTENSION_LENGTH:
            counts[ext] += 1
    return [(f".{ext}", count) for ext, count in counts.most_common(limit)]
