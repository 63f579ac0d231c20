"""Visitor interface generator for tree-sitter grammars.

Generates a typed Python visitor class from a grammar's node-types.json
schema: one visit_<kind> method per concrete node kind, plus a dispatch()
entry point that routes a parsed node to the method matching its kind.

Usage:
    python visitor_gen.py --node-types src/node-types.json \
        --output my_grammar/visitor.py --class-name MyGrammarVisitor
"""

import argparse
import hashlib
import json
import keyword
from collections import defaultdict
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType

GENERATOR_NAME = "node-visitor-gen"
DEFAULT_CLASS_NAME = "Visitor"


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class GenerateConfig:
    node_types: Path
    output: Path
    class_name: str


@dataclass(frozen=True)
class DiscoveryConfig:
    node_types: Path
    filter_text: str | None


VALID_ERROR_CODES = {
    "MISSING_NODE_TYPES",
    "MISSING_OUTPUT",
    "INVALID_CLASS_NAME",
    "CONFLICT_GENERATE_DISCOVERY",
    "FILTER_WITHOUT_LIST",
    "PATH_NOT_FOUND",
}


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_class_name(name: str) -> str:
    if (
        name.isidentifier()
        and not keyword.iskeyword(name)
        and name not in GENERATED_MODULE_NAMES
    ):
        return name
    raise ConfigError(
        "INVALID_CLASS_NAME",
        f"Invalid visitor class name: {name}",
        "Class names must be Python identifiers that do not shadow the "
        "generated module's own names (for example ArithmeticVisitor).",
    )


def validate_path_exists(
    path: Path | None, flag: str, suggestion: str | None = None
) -> Path:
    if path is None:
        raise ConfigError(
            "PATH_NOT_FOUND",
            f"{flag} is required: no path provided.",
            suggestion or f"Pass the path explicitly: {flag} /path/to/resource",
        )
    if path.exists():
        return path
    raise ConfigError(
        "PATH_NOT_FOUND",
        f"Path for {flag} does not exist: {path}",
        suggestion or "Provide an existing path for this flag.",
    )


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a typed visitor interface from node-types.json"
    )

    parser.add_argument("--node-types", type=Path, default=None)
    parser.add_argument("--output", type=Path, default=None)
    parser.add_argument("--class-name", type=str, default=None)

    parser.add_argument("--list-kinds", action="store_true", default=False)
    parser.add_argument("--filter", type=str, default=None)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_argument_parser()
    return parser.parse_args(argv)


def validate_config(args: argparse.Namespace) -> GenerateConfig | DiscoveryConfig:
    """Turn parsed CLI arguments into a validated config.

    Checks run in a fixed order: flag conflicts first, then the required
    --node-types path, then mode-specific requirements.

    Args:
        args: Namespace produced by build_argument_parser().

    Returns:
        DiscoveryConfig when --list-kinds is given, otherwise GenerateConfig.

    Raises:
        ConfigError: FILTER_WITHOUT_LIST, CONFLICT_GENERATE_DISCOVERY,
            MISSING_NODE_TYPES, PATH_NOT_FOUND, MISSING_OUTPUT or
            INVALID_CLASS_NAME.
    """
    has_generate_input = bool(args.output or args.class_name)

    if args.filter and not args.list_kinds:
        raise ConfigError(
            "FILTER_WITHOUT_LIST",
            "--filter requires --list-kinds.",
            "Add --list-kinds or remove --filter.",
        )

    if has_generate_input and args.list_kinds:
        raise ConfigError(
            "CONFLICT_GENERATE_DISCOVERY",
            "Generate flags cannot be combined with --list-kinds.",
            "Choose either generate mode (--output) or --list-kinds.",
        )

    if args.node_types is None:
        raise ConfigError(
            "MISSING_NODE_TYPES",
            "--node-types is required.",
            "tree-sitter generate writes it to src/node-types.json in the "
            "grammar repository.",
        )
    node_types = validate_path_exists(args.node_types, "--node-types")

    if args.list_kinds:
        return DiscoveryConfig(node_types=node_types, filter_text=args.filter)

    if args.output is None:
        raise ConfigError(
            "MISSING_OUTPUT",
            "Generate mode requires --output.",
            "Pass the path of the Python module to write, e.g. --output visitor.py",
        )

    class_name = validate_class_name(args.class_name or DEFAULT_CLASS_NAME)
    return GenerateConfig(
        node_types=node_types,
        output=args.output,
        class_name=class_name,
    )


def build_config(argv: list[str] | None = None) -> GenerateConfig | DiscoveryConfig:
    return validate_config(parse_args(argv))


# ===--- Generation errors ---=== #


VALID_GENERATION_ERROR_CODES = {
    "MALFORMED",
    "NO_CONCRETE_KINDS",
    "UNKNOWN_TYPE_REFERENCE",
    "DUPLICATE_KIND",
    "COLLISION",
}


class GenerationError(Exception):
    """Fatal generation-time failure. Raised before anything is written."""

    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_GENERATION_ERROR_CODES:
            raise ValueError(f"Unknown generation error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


class SchemaError(GenerationError):
    pass


class ModelError(GenerationError):
    def __init__(self, code: str, kind_name: str, message: str):
        super().__init__(code, message)
        self.kind_name = kind_name


class NameCollisionError(GenerationError):
    def __init__(self, identifier: str, names: list[str]):
        quoted = ", ".join(repr(name) for name in names)
        super().__init__(
            "COLLISION",
            f"Node kinds {quoted} all map to identifier {identifier!r}",
            "Rename one of the grammar rules so the visit methods stay distinct.",
        )
        self.identifier = identifier
        self.names = names


# ===--- Constants ---=== #

METHOD_PREFIX = "visit_"
DISPATCH_METHOD = "dispatch"
NODE_PARAM = "node"
TYPE_PARAM = "R"
RUNTIME_MODULE = "visitor_runtime"

GENERATED_MODULE_NAMES = {
    TYPE_PARAM,
    "NODE_KINDS",
    "SUPERTYPES",
    "DISPATCH_TABLE",
    "MappingProxyType",
    "Generic",
    "TypeVar",
    "NodeHandle",
    "NotImplementedVisit",
    "UnknownNodeKind",
    "node_span",
}

RESERVED_IDENTIFIERS = {DISPATCH_METHOD, NODE_PARAM, "self"} | set(keyword.kwlist)

_IDENT_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_"
)

# Escape words for punctuation that shows up in grammar kind names.
ESCAPE_WORDS = {
    "~": "TILDE",
    "`": "BQUOTE",
    "!": "BANG",
    "@": "AT",
    "#": "POUND",
    "$": "DOLLAR",
    "%": "PERCENT",
    "^": "CARET",
    "&": "AMP",
    "*": "STAR",
    "(": "LPAREN",
    ")": "RPAREN",
    "-": "DASH",
    "+": "PLUS",
    "=": "EQ",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACK",
    "]": "RBRACK",
    "\\": "BSLASH",
    "|": "PIPE",
    ":": "COLON",
    ";": "SEMI",
    '"': "DQUOTE",
    "'": "SQUOTE",
    "<": "LT",
    ">": "GT",
    ",": "COMMA",
    ".": "DOT",
    "?": "QMARK",
    "/": "SLASH",
    " ": "SPACE",
    "\n": "LF",
    "\r": "CR",
    "\t": "TAB",
}


# ===--- Data classes ---=== #


class KindClass(Enum):
    CONCRETE = "concrete"
    UNION = "union"


@dataclass(frozen=True)
class TypeRef:
    name: str
    named: bool


@dataclass(frozen=True)
class FieldSpec:
    required: bool
    multiple: bool
    types: frozenset[TypeRef]


@dataclass(frozen=True)
class RawEntry:
    """One top-level record of node-types.json, shape-checked but unresolved."""

    name: str
    named: bool
    fields: dict[str, FieldSpec] | None
    children: FieldSpec | None
    subtypes: tuple[TypeRef, ...] | None


@dataclass(frozen=True)
class NodeTypeDescriptor:
    name: str
    named: bool
    kind_class: KindClass
    fields: Mapping[str, FieldSpec]
    children: FieldSpec | None
    subtypes: tuple[TypeRef, ...]


@dataclass(frozen=True)
class TypeModel:
    """Validated, closed-world model of a grammar's named node kinds.

    Attributes:
        kinds: Kind name -> descriptor, in schema order. Read-only.
        tokens: Anonymous token kinds declared at the top level of the
            schema. Never dispatch targets.
    """

    kinds: Mapping[str, NodeTypeDescriptor]
    tokens: frozenset[str]


# ===--- Schema loading ---=== #


def _malformed(where: str, problem: str) -> SchemaError:
    return SchemaError(
        "MALFORMED",
        f"Malformed node-types schema at {where}: {problem}",
        "Regenerate node-types.json with tree-sitter generate.",
    )


def _parse_type_ref(raw: object, where: str) -> TypeRef:
    if not isinstance(raw, dict):
        raise _malformed(where, "type reference must be an object")
    name = raw.get("type")
    named = raw.get("named")
    if not isinstance(name, str) or not name:
        raise _malformed(where, "'type' must be a non-empty string")
    if not isinstance(named, bool):
        raise _malformed(where, "'named' must be a boolean")
    return TypeRef(name, named)


def _parse_flag(raw: dict, key: str, where: str) -> bool:
    # Absent multiplicity flags take their most permissive reading.
    value = raw.get(key, False)
    if not isinstance(value, bool):
        raise _malformed(where, f"'{key}' must be a boolean")
    return value


def _parse_field_spec(raw: object, where: str) -> FieldSpec:
    if not isinstance(raw, dict):
        raise _malformed(where, "field spec must be an object")
    types = raw.get("types")
    if not isinstance(types, list):
        raise _malformed(where, "'types' must be a list")
    return FieldSpec(
        required=_parse_flag(raw, "required", where),
        multiple=_parse_flag(raw, "multiple", where),
        types=frozenset(
            _parse_type_ref(ref, f"{where}.types[{i}]") for i, ref in enumerate(types)
        ),
    )


def parse_raw_entry(raw: object, index: int) -> RawEntry:
    """Validate one top-level schema entry and convert it to a RawEntry.

    Absent "fields", "children" and "subtypes" stay None so the model
    builder can tell a missing key from an empty one. Unknown keys are
    ignored.

    Args:
        raw: Decoded JSON value at position index of the document.
        index: Position of the entry, used in error locations.

    Raises:
        SchemaError: MALFORMED, naming the entry index and offending key.
    """
    where = f"[{index}]"
    if not isinstance(raw, dict):
        raise _malformed(where, "entry must be an object")

    name = raw.get("type")
    named = raw.get("named")
    if not isinstance(name, str) or not name:
        raise _malformed(where, "'type' must be a non-empty string")
    if not isinstance(named, bool):
        raise _malformed(f"{where} ({name})", "'named' must be a boolean")

    fields = None
    if "fields" in raw:
        raw_fields = raw["fields"]
        if not isinstance(raw_fields, dict):
            raise _malformed(f"{where}.fields", "'fields' must be an object")
        fields = {
            field_name: _parse_field_spec(spec, f"{where}.fields.{field_name}")
            for field_name, spec in raw_fields.items()
        }

    children = None
    if "children" in raw:
        children = _parse_field_spec(raw["children"], f"{where}.children")

    subtypes = None
    if "subtypes" in raw:
        raw_subtypes = raw["subtypes"]
        if not isinstance(raw_subtypes, list):
            raise _malformed(f"{where}.subtypes", "'subtypes' must be a list")
        subtypes = tuple(
            _parse_type_ref(ref, f"{where}.subtypes[{i}]")
            for i, ref in enumerate(raw_subtypes)
        )

    return RawEntry(
        name=name, named=named, fields=fields, children=children, subtypes=subtypes
    )


def load_schema(data: bytes) -> tuple[RawEntry, ...]:
    """Parse node-types.json bytes into raw entries.

    Checks document shape only. Cross-references are left to
    build_type_model.

    Raises:
        SchemaError: MALFORMED when the bytes are not JSON or the document
            is not a list of kind records.
    """
    try:
        document = json.loads(data)
    except (ValueError, RecursionError) as err:
        raise SchemaError(
            "MALFORMED",
            f"node-types schema is not valid JSON: {err}",
            "Regenerate node-types.json with tree-sitter generate.",
        ) from err

    if not isinstance(document, list):
        raise _malformed("top level", "expected a list of node kind records")

    return tuple(parse_raw_entry(raw, i) for i, raw in enumerate(document))


# ===--- Type model ---=== #


def _iter_references(descriptor: NodeTypeDescriptor) -> Iterator[tuple[str, TypeRef]]:
    for field_name, spec in descriptor.fields.items():
        for ref in sorted(spec.types, key=_type_ref_sort_key):
            yield f"field '{field_name}'", ref
    if descriptor.children is not None:
        for ref in sorted(descriptor.children.types, key=_type_ref_sort_key):
            yield "children", ref
    for ref in descriptor.subtypes:
        yield "subtypes", ref


def _type_ref_sort_key(ref: TypeRef) -> tuple[str, bool]:
    return (ref.name, ref.named)


def build_type_model(entries: tuple[RawEntry, ...]) -> TypeModel:
    """Index raw entries by name and prove referential closure.

    An entry is a union when it declares subtypes and no fields of its
    own. Anything else is concrete, including leaves with no fields at all.
    Anonymous top-level entries are recorded as tokens.

    Raises:
        ModelError: DUPLICATE_KIND when two entries share a name,
            UNKNOWN_TYPE_REFERENCE when a named reference does not resolve.
        SchemaError: NO_CONCRETE_KINDS when nothing could ever be dispatched.
    """
    kinds: dict[str, NodeTypeDescriptor] = {}
    tokens: set[str] = set()

    for entry in entries:
        if not entry.named:
            if entry.name in tokens:
                raise ModelError(
                    "DUPLICATE_KIND",
                    entry.name,
                    f"Anonymous token {entry.name!r} is declared more than once",
                )
            tokens.add(entry.name)
            continue

        if entry.name in kinds:
            raise ModelError(
                "DUPLICATE_KIND",
                entry.name,
                f"Node kind {entry.name!r} is declared more than once",
            )

        fields = entry.fields or {}
        is_union = entry.subtypes is not None and not fields
        kinds[entry.name] = NodeTypeDescriptor(
            name=entry.name,
            named=True,
            kind_class=KindClass.UNION if is_union else KindClass.CONCRETE,
            fields=MappingProxyType(dict(fields)),
            children=entry.children,
            subtypes=entry.subtypes if is_union else (),
        )

    for descriptor in kinds.values():
        for where, ref in _iter_references(descriptor):
            if ref.named and ref.name not in kinds:
                raise ModelError(
                    "UNKNOWN_TYPE_REFERENCE",
                    ref.name,
                    f"Node kind {descriptor.name!r} {where} references "
                    f"undeclared kind {ref.name!r}",
                )

    if not any(d.kind_class is KindClass.CONCRETE for d in kinds.values()):
        raise SchemaError(
            "NO_CONCRETE_KINDS",
            "node-types schema declares no concrete named node kinds",
            "Check that the file is the grammar's src/node-types.json.",
        )

    return TypeModel(kinds=MappingProxyType(kinds), tokens=frozenset(tokens))


def load_type_model(data: bytes) -> TypeModel:
    return build_type_model(load_schema(data))


def concrete_kinds(model: TypeModel) -> list[NodeTypeDescriptor]:
    return [d for d in model.kinds.values() if d.kind_class is KindClass.CONCRETE]


def union_kinds(model: TypeModel) -> list[NodeTypeDescriptor]:
    return [d for d in model.kinds.values() if d.kind_class is KindClass.UNION]


def expand_union(model: TypeModel, name: str) -> tuple[str, ...]:
    """Return the concrete kinds a union stands for, transitively.

    Nested unions are flattened in declaration order. Each concrete kind
    appears once; cycles between unions are tolerated.
    """
    members: list[str] = []
    seen: set[str] = set()

    def _walk(kind_name: str) -> None:
        if kind_name in seen:
            return
        seen.add(kind_name)
        descriptor = model.kinds[kind_name]
        if descriptor.kind_class is KindClass.CONCRETE:
            members.append(kind_name)
            return
        for ref in descriptor.subtypes:
            if ref.named:
                _walk(ref.name)

    _walk(name)
    return tuple(members)


# ===--- Name resolution ---=== #


def sanitize_identifier(name: str) -> str:
    """Transliterate a kind name into a Python identifier fragment.

    Characters outside [A-Za-z0-9_] become escape words joined with "_"
    ("a-b" -> "a_DASHb", "+" -> "PLUS"). Characters with no escape word
    become U<hex>. Reserved words get a trailing "_".
    """
    parts: list[str] = []
    for ch in name:
        if ch in _IDENT_CHARS:
            parts.append(ch)
            continue
        word = ESCAPE_WORDS.get(ch, f"U{ord(ch):04X}")
        if parts and not parts[-1].endswith("_"):
            parts.append("_")
        parts.append(word)

    identifier = "".join(parts)
    if identifier in RESERVED_IDENTIFIERS:
        identifier += "_"
    return identifier


def method_name_for(identifier: str) -> str:
    return METHOD_PREFIX + identifier


def resolve_names(model: TypeModel) -> Mapping[str, str]:
    """Assign every concrete kind a unique identifier.

    Raises:
        NameCollisionError: Two kind names sanitize to the same identifier.
    """
    names: dict[str, str] = {}
    claimed: dict[str, list[str]] = defaultdict(list)
    for descriptor in concrete_kinds(model):
        identifier = sanitize_identifier(descriptor.name)
        names[descriptor.name] = identifier
        claimed[identifier].append(descriptor.name)

    for identifier, kind_names in claimed.items():
        if len(kind_names) > 1:
            raise NameCollisionError(identifier, sorted(kind_names))

    return MappingProxyType(names)


# ===--- Interface synthesis ---=== #


@dataclass(frozen=True)
class OperationSpec:
    """One generated visit method.

    Attributes:
        kind: Raw node kind the method handles, e.g. "add_expr".
        identifier: Sanitized identifier from resolve_names.
        method_name: Python method name, e.g. "visit_add_expr".
        doc_lines: Docstring summary followed by detail lines. Unescaped.
    """

    kind: str
    identifier: str
    method_name: str
    doc_lines: tuple[str, ...]


@dataclass(frozen=True)
class InterfaceSpec:
    class_name: str
    type_param: str
    operations: tuple[OperationSpec, ...]


def _format_type_ref(ref: TypeRef) -> str:
    return ref.name if ref.named else f"'{ref.name}'"


def describe_field(label: str, spec: FieldSpec) -> str:
    types = ", ".join(
        _format_type_ref(ref) for ref in sorted(spec.types, key=_type_ref_sort_key)
    )
    flags = "required" if spec.required else "optional"
    if spec.multiple:
        flags += ", multiple"
    return f"{label}: {types or '-'} ({flags})"


def operation_doc_lines(descriptor: NodeTypeDescriptor) -> tuple[str, ...]:
    lines = [f"Visit a node of kind ``{descriptor.name}``."]
    for field_name in sorted(descriptor.fields):
        lines.append(describe_field(field_name, descriptor.fields[field_name]))
    if descriptor.children is not None:
        lines.append(describe_field("children", descriptor.children))
    return tuple(lines)


def synthesize_interface(
    model: TypeModel,
    names: Mapping[str, str],
    class_name: str = DEFAULT_CLASS_NAME,
) -> InterfaceSpec:
    """Build one visit operation per concrete kind, in schema order.

    Union kinds get no operation: a parser never instantiates them.
    """
    operations = tuple(
        OperationSpec(
            kind=descriptor.name,
            identifier=names[descriptor.name],
            method_name=method_name_for(names[descriptor.name]),
            doc_lines=operation_doc_lines(descriptor),
        )
        for descriptor in concrete_kinds(model)
    )
    return InterfaceSpec(
        class_name=class_name, type_param=TYPE_PARAM, operations=operations
    )


# ===--- Dispatch synthesis ---=== #


@dataclass(frozen=True)
class DispatchEntry:
    kind: str
    method_name: str


@dataclass(frozen=True)
class DispatchSpec:
    """Runtime lookup emitted alongside the interface.

    Attributes:
        entry_point: Name of the polymorphic method, "dispatch".
        entries: Kind discriminator -> method name rows, schema order.
        supertypes: (union name, concrete member kinds) rows, schema order.
    """

    entry_point: str
    entries: tuple[DispatchEntry, ...]
    supertypes: tuple[tuple[str, tuple[str, ...]], ...]


def synthesize_dispatch(model: TypeModel, names: Mapping[str, str]) -> DispatchSpec:
    """Build the kind -> method table and the union membership rows.

    Entries follow schema order and cover exactly the concrete kinds.
    Unions never get an entry; they only contribute SUPERTYPES rows.

    Args:
        model: Type model from build_type_model().
        names: Identifier mapping from resolve_names() for the same model.

    Returns:
        DispatchSpec with one DispatchEntry per concrete kind.
    """
    entries = tuple(
        DispatchEntry(
            kind=descriptor.name,
            method_name=method_name_for(names[descriptor.name]),
        )
        for descriptor in concrete_kinds(model)
    )
    supertypes = tuple(
        (descriptor.name, expand_union(model, descriptor.name))
        for descriptor in union_kinds(model)
    )
    return DispatchSpec(
        entry_point=DISPATCH_METHOD, entries=entries, supertypes=supertypes
    )


# ===--- Kind discovery ---=== #


@dataclass(frozen=True)
class KindSummary:
    name: str
    kind_class: KindClass
    method_name: str | None
    fields: tuple[str, ...]
    members: tuple[str, ...]


def gather_kind_summaries(
    model: TypeModel, names: Mapping[str, str]
) -> list[KindSummary]:
    """Summarize every kind of the model for --list-kinds.

    Returns:
        One KindSummary per kind in schema order. Unions have
        method_name None and list their direct subtypes as members.
    """
    summaries = []
    for descriptor in model.kinds.values():
        identifier = names.get(descriptor.name)
        summaries.append(
            KindSummary(
                name=descriptor.name,
                kind_class=descriptor.kind_class,
                method_name=method_name_for(identifier) if identifier else None,
                fields=tuple(sorted(descriptor.fields)),
                members=tuple(ref.name for ref in descriptor.subtypes),
            )
        )
    return summaries


def filter_kinds_by_text(
    summaries: list[KindSummary], filter_text: str
) -> list[KindSummary]:
    needle = filter_text.lower()
    return [s for s in summaries if needle in s.name.lower()]


def format_kinds_table(summaries: list[KindSummary], source_label: str) -> str:
    """Return the complete --list-kinds output as a single string.

    Output format:

        3 node kinds in node-types.json:

          _expr     union     -               subtypes: add_expr, number
          add_expr  concrete  visit_add_expr  fields: lhs, rhs
          number    concrete  visit_number

    Column widths come from the widest value in summaries.

    Args:
        summaries: Kind summaries to format (already filtered if applicable).
        source_label: Schema file label for the heading line.

    Returns:
        Formatted multi-line string including trailing newline.
    """
    lines = [f"{len(summaries)} node kinds in {source_label}:", ""]

    if not summaries:
        lines.append("")
        return "\n".join(lines)

    name_width = max(len(s.name) for s in summaries)
    class_width = max(len(s.kind_class.value) for s in summaries)
    method_width = max(len(s.method_name or "-") for s in summaries)

    for s in summaries:
        if s.members:
            annotation = f"subtypes: {', '.join(s.members)}"
        elif s.fields:
            annotation = f"fields: {', '.join(s.fields)}"
        else:
            annotation = ""
        row = (
            f"  {s.name.ljust(name_width)}  {s.kind_class.value.ljust(class_width)}"
            f"  {(s.method_name or '-').ljust(method_width)}  {annotation}"
        )
        lines.append(row.rstrip())

    lines.append("")
    return "\n".join(lines)


def run_discovery(config: DiscoveryConfig) -> None:
    """Print the --list-kinds table for config.node_types.

    Raises:
        GenerationError: Propagated from loading, model building or naming.
        OSError: Schema file not readable.
    """
    model = load_type_model(config.node_types.read_bytes())
    summaries = gather_kind_summaries(model, resolve_names(model))
    if config.filter_text is not None:
        summaries = filter_kinds_by_text(summaries, config.filter_text)
    print(format_kinds_table(summaries, config.node_types.name), end="")


# ===--- Shared run metadata ---=== #


@dataclass(frozen=True)
class WriteConfig:
    """Generation metadata embedded in the generated module's preamble.

    Attributes:
        class_name: Name of the generated visitor class.
        source_label: Human-readable schema label, usually the file name.
        schema_digest: Short sha256 of the schema bytes. Identifies the exact
            schema a visitor was generated against.
    """

    class_name: str
    source_label: str
    schema_digest: str


@dataclass(frozen=True)
class ImportSpec:
    """A single "from <module> import <names>" line in the generated module."""

    module: str
    names: tuple[str, ...]


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing the generated module.

    Attributes:
        filename: Filename written, e.g. "visitor.py".
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written UTF-8 content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    filename: str
    path: Path
    line_count: int
    byte_count: int


STDLIB_IMPORTS: tuple[ImportSpec, ...] = (
    ImportSpec("types", ("MappingProxyType",)),
    ImportSpec("typing", ("Generic", "TypeVar")),
)

RUNTIME_IMPORTS: tuple[ImportSpec, ...] = (
    ImportSpec(
        RUNTIME_MODULE,
        ("NodeHandle", "NotImplementedVisit", "UnknownNodeKind", "node_span"),
    ),
)


def schema_digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:16]


def build_write_config(class_name: str, source_label: str, data: bytes) -> WriteConfig:
    if not source_label:
        raise ValueError("source_label must not be empty")
    return WriteConfig(
        class_name=class_name,
        source_label=source_label,
        schema_digest=schema_digest(data),
    )


# ===--- Pure formatting functions ---=== #

_HEADER_BORDER: str = "# x-------------------------------------------x #"
_INDENT = "    "


def _py_str(text: str) -> str:
    return json.dumps(text)


def _doc_safe(text: str) -> str:
    # Escaped text is safe inside a one-line, non-raw triple-quoted string.
    return json.dumps(text)[1:-1]


def format_file_header(config: WriteConfig) -> list[str]:
    """Return comment-block lines for the generated module header.

    Output format:
        # x-------------------------------------------x #
        # | ArithmeticVisitor visitor interface
        # | Generated by node-visitor-gen. Do not edit.
        # | Source: node-types.json
        # | Schema sha256: 3f1c0a9b2d4e5f60
        # x-------------------------------------------x #

    Raises:
        ValueError: If config.source_label is empty.
    """
    if not config.source_label:
        raise ValueError("source_label must not be empty")
    return [
        _HEADER_BORDER,
        f"# | {config.class_name} visitor interface",
        f"# | Generated by {GENERATOR_NAME}. Do not edit.",
        f"# | Source: {config.source_label}",
        f"# | Schema sha256: {config.schema_digest}",
        _HEADER_BORDER,
    ]


def format_import_block(
    stdlib_imports: tuple[ImportSpec, ...],
    runtime_imports: tuple[ImportSpec, ...],
) -> list[str]:
    """Return import lines, stdlib group first, one blank line between groups.

    Raises:
        ValueError: If any ImportSpec has an empty names tuple.
    """
    for imp in stdlib_imports + runtime_imports:
        if not imp.names:
            raise ValueError(f"ImportSpec for module '{imp.module}' has empty names tuple")

    lines = [f"from {imp.module} import {', '.join(imp.names)}" for imp in stdlib_imports]
    if stdlib_imports and runtime_imports:
        lines.append("")
    lines.extend(
        f"from {imp.module} import {', '.join(imp.names)}" for imp in runtime_imports
    )
    return lines


def format_operation(op: OperationSpec, type_param: str) -> list[str]:
    """Return the method lines for one visit operation.

    The body raises NotImplementedVisit with the node kind and span, so a
    kind fails only when dispatch actually reaches it.

    Output format (docstring quotes elided):
        def visit_<kind>(self, node: NodeHandle) -> R:
            <summary>

            <detail lines>
            raise NotImplementedVisit(<kind>, node_span(node))
    """
    body = 2 * _INDENT
    lines = [f"{_INDENT}def {op.method_name}(self, {NODE_PARAM}: NodeHandle) -> {type_param}:"]
    summary, *details = [_doc_safe(line) for line in op.doc_lines]
    if details:
        lines.append(f'{body}"""{summary}')
        lines.append("")
        lines.extend(f"{body}{line}" for line in details)
        lines.append(f'{body}"""')
    else:
        lines.append(f'{body}"""{summary}"""')
    lines.append(
        f"{body}raise NotImplementedVisit({_py_str(op.kind)}, node_span({NODE_PARAM}))"
    )
    return lines


def format_dispatch_method(dispatch: DispatchSpec, type_param: str) -> list[str]:
    """Return the lines of the class's dispatch method.

    Anonymous token nodes are rejected before the table lookup, since a
    token may share its type string with a named kind. Methods are looked
    up by name on self so subclass overrides are honored.

    Raises (in generated code):
        UnknownNodeKind: Node is anonymous or its kind is not in
            DISPATCH_TABLE.
    """
    body = 2 * _INDENT
    return [
        f"{_INDENT}def {dispatch.entry_point}(self, {NODE_PARAM}: NodeHandle) -> {type_param}:",
        f'{body}"""Visit a node of any kind by routing it to its visit method."""',
        f"{body}if not {NODE_PARAM}.is_named:",
        f"{body}{_INDENT}raise UnknownNodeKind({NODE_PARAM}.type)",
        f"{body}try:",
        f"{body}{_INDENT}method_name = DISPATCH_TABLE[{NODE_PARAM}.type]",
        f"{body}except KeyError:",
        f"{body}{_INDENT}raise UnknownNodeKind({NODE_PARAM}.type) from None",
        f"{body}return getattr(self, method_name)({NODE_PARAM})",
    ]


def format_interface_class(interface: InterfaceSpec, dispatch: DispatchSpec) -> list[str]:
    """Return the visitor class: docstring, visit methods, then dispatch."""
    lines = [
        f"class {interface.class_name}(Generic[{interface.type_param}]):",
        f'{_INDENT}"""Typed visitor over every concrete node kind of the grammar.',
        "",
        f"{_INDENT}Override visit_<kind> for the kinds you handle. Kinds left at their",
        f"{_INDENT}default raise NotImplementedVisit when first reached, and dispatch()",
        f"{_INDENT}raises UnknownNodeKind for kinds the schema never declared.",
        f'{_INDENT}"""',
    ]
    for op in interface.operations:
        lines.append("")
        lines.extend(format_operation(op, interface.type_param))
    lines.append("")
    lines.extend(format_dispatch_method(dispatch, interface.type_param))
    return lines


def format_kind_constants(dispatch: DispatchSpec) -> list[str]:
    """Return the NODE_KINDS and SUPERTYPES definitions.

    Output format:
        NODE_KINDS = frozenset(
            {
                "<kind>",
            }
        )

        SUPERTYPES = MappingProxyType(
            {
                "<union>": (
                    "<concrete member>",
                ),
            }
        )

    SUPERTYPES collapses to MappingProxyType({}) when the schema has no
    unions.
    """
    lines = ["NODE_KINDS = frozenset(", f"{_INDENT}{{"]
    lines.extend(f"{2 * _INDENT}{_py_str(e.kind)}," for e in dispatch.entries)
    lines.extend([f"{_INDENT}}}", ")", ""])

    if not dispatch.supertypes:
        lines.append("SUPERTYPES = MappingProxyType({})")
        return lines

    lines.extend(["SUPERTYPES = MappingProxyType(", f"{_INDENT}{{"])
    for union_name, members in dispatch.supertypes:
        if not members:
            lines.append(f"{2 * _INDENT}{_py_str(union_name)}: (),")
            continue
        lines.append(f"{2 * _INDENT}{_py_str(union_name)}: (")
        lines.extend(f"{3 * _INDENT}{_py_str(member)}," for member in members)
        lines.append(f"{2 * _INDENT}),")
    lines.extend([f"{_INDENT}}}", ")"])
    return lines


def format_dispatch_table(dispatch: DispatchSpec) -> list[str]:
    """Return the read-only DISPATCH_TABLE mapping kind to method name."""
    lines = ["DISPATCH_TABLE = MappingProxyType(", f"{_INDENT}{{"]
    lines.extend(
        f"{2 * _INDENT}{_py_str(e.kind)}: {_py_str(e.method_name)},"
        for e in dispatch.entries
    )
    lines.extend([f"{_INDENT}}}", ")"])
    return lines


def assemble_visitor_source(
    config: WriteConfig, interface: InterfaceSpec, dispatch: DispatchSpec
) -> str:
    """Assemble the complete generated visitor module.

    File structure:
        <header_comment_block>
        <module docstring>
                                    <- blank line
        from __future__ import annotations
                                    <- blank line
        <import_block>
                                    <- blank line
        R = TypeVar("R")
        <NODE_KINDS, SUPERTYPES, DISPATCH_TABLE constants>
                                    <- two blank lines
        <visitor class>
                                    <- trailing newline

    Output depends only on its arguments, so identical schema bytes always
    produce identical source.

    Raises:
        ValueError: Propagated from format_file_header or format_import_block.
    """
    parts: list[str] = list(format_file_header(config))
    parts.append(f'"""Visitor interface for {_doc_safe(config.source_label)}."""')
    parts.append("")
    parts.append("from __future__ import annotations")
    parts.append("")
    parts.extend(format_import_block(STDLIB_IMPORTS, RUNTIME_IMPORTS))
    parts.append("")
    parts.append(f"{interface.type_param} = TypeVar({_py_str(interface.type_param)})")
    parts.append("")
    parts.extend(format_kind_constants(dispatch))
    parts.append("")
    parts.extend(format_dispatch_table(dispatch))
    parts.append("")
    parts.append("")
    parts.extend(format_interface_class(interface, dispatch))
    return "\n".join(parts) + "\n"


# ===--- Writer I/O functions ---=== #


def write_visitor_module(output_path: Path, source: str) -> FileWriteResult:
    """Write the generated module to disk.

    Thin I/O shell. Creates missing parent directories before writing.

    Raises:
        OSError: Propagated directly if the filesystem write fails.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(source, encoding="utf-8")
    resolved = output_path.resolve()
    return FileWriteResult(
        filename=output_path.name,
        path=resolved,
        line_count=source.count("\n"),
        byte_count=len(resolved.read_bytes()),
    )


# ===--- Pipeline ---=== #


@dataclass(frozen=True)
class GeneratedVisitor:
    """Every stage output of one generation run, ending in the module source."""

    model: TypeModel
    names: Mapping[str, str]
    interface: InterfaceSpec
    dispatch: DispatchSpec
    source: str


def generate_visitor(data: bytes, write_config: WriteConfig) -> GeneratedVisitor:
    """Run load -> build -> resolve -> synthesize -> assemble on schema bytes.

    Pure: nothing is written. Any stage failure propagates before a single
    line of source exists.

    Raises:
        SchemaError, ModelError, NameCollisionError: From the failing stage.
    """
    model = build_type_model(load_schema(data))
    names = resolve_names(model)
    interface = synthesize_interface(model, names, write_config.class_name)
    dispatch = synthesize_dispatch(model, names)
    source = assemble_visitor_source(write_config, interface, dispatch)
    return GeneratedVisitor(
        model=model,
        names=names,
        interface=interface,
        dispatch=dispatch,
        source=source,
    )


def generate_visitor_source(
    data: bytes,
    class_name: str = DEFAULT_CLASS_NAME,
    source_label: str = "node-types.json",
) -> str:
    """Generate visitor module source from schema bytes without writing it.

    Raises:
        GenerationError: Any SchemaError, ModelError or NameCollisionError
            from the pipeline stages.
    """
    write_config = build_write_config(class_name, source_label, data)
    return generate_visitor(data, write_config).source


def run_generate(config: GenerateConfig) -> FileWriteResult:
    """Execute the complete generation pipeline for a GenerateConfig.

    Raises:
        OSError: Schema not readable or filesystem write failure.
        GenerationError: Any generation-time failure; nothing is written.
    """
    print(f"Parsing: {config.node_types}")
    data = config.node_types.read_bytes()
    write_config = build_write_config(config.class_name, config.node_types.name, data)

    generated = generate_visitor(data, write_config)
    model = generated.model
    print(
        f"  Model: {len(concrete_kinds(model))} concrete kinds, "
        f"{len(union_kinds(model))} unions, {len(model.tokens)} tokens"
    )

    result = write_visitor_module(config.output, generated.source)
    print(f"  Written: {result.line_count} lines to {result.path}")

    summary = build_generation_summary(write_config, generated, result)
    print_generation_summary(summary)
    return result


# ===--- Summary report ---=== #


@dataclass(frozen=True)
class GenerationSummary:
    """Immutable data for the post-generation console report."""

    class_name: str
    source_label: str
    schema_digest: str
    concrete_count: int
    union_count: int
    token_count: int
    file: FileWriteResult


def build_generation_summary(
    write_config: WriteConfig,
    generated: GeneratedVisitor,
    write_result: FileWriteResult,
) -> GenerationSummary:
    return GenerationSummary(
        class_name=write_config.class_name,
        source_label=write_config.source_label,
        schema_digest=write_config.schema_digest,
        concrete_count=len(generated.interface.operations),
        union_count=len(generated.dispatch.supertypes),
        token_count=len(generated.model.tokens),
        file=write_result,
    )


def format_generation_summary(summary: GenerationSummary) -> str:
    """Render a GenerationSummary to a multi-section console string.

    Returns a string with exactly one trailing newline.
    """
    lines = [
        f"{summary.class_name} generated:",
        "",
        f"  Source:     {summary.source_label} (sha256 {summary.schema_digest})",
        f"  Output:     {summary.file.path}",
        "",
        "  Node kinds:",
        f"    {'Concrete:':<11}{summary.concrete_count:>6}  "
        f"({summary.concrete_count} visit methods)",
        f"    {'Unions:':<11}{summary.union_count:>6}",
        f"    {'Tokens:':<11}{summary.token_count:>6}",
        "",
        f"  Written: {summary.file.filename} ({summary.file.line_count:,} lines)",
        "",
    ]
    return "\n".join(lines)


def print_generation_summary(summary: GenerationSummary) -> None:
    print(format_generation_summary(summary), end="")


# ===--- Main generation ---=== #


def main(argv: list[str] | None = None):
    try:
        config = build_config(argv)
    except ConfigError as err:
        print(f"Config error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err

    try:
        if isinstance(config, DiscoveryConfig):
            run_discovery(config)
        else:
            run_generate(config)
    except GenerationError as err:
        print(f"Generation error [{err.code}]: {err.message}")
        if err.suggestion:
            print(f"Hint: {err.suggestion}")
        raise SystemExit(1) from err
    except OSError as err:
        print(f"Error: {err}")
        raise SystemExit(1) from err


if __name__ == "__main__":
    main()
