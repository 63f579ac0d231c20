from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import visitor_gen


def _arith(arithmetic_schema: Path) -> tuple[visitor_gen.TypeModel, dict[str, str]]:
    model = visitor_gen.load_type_model(arithmetic_schema.read_bytes())
    return model, dict(visitor_gen.resolve_names(model))


def test_interface_has_one_operation_per_concrete_kind(arithmetic_schema: Path) -> None:
    model, names = _arith(arithmetic_schema)

    interface = visitor_gen.synthesize_interface(model, names, "ArithmeticVisitor")

    kinds = [op.kind for op in interface.operations]
    assert kinds == [d.name for d in visitor_gen.concrete_kinds(model)]
    assert len(set(kinds)) == len(kinds)
    assert "_expr" not in kinds
    assert interface.class_name == "ArithmeticVisitor"
    assert interface.type_param == "R"


def test_operation_method_names_use_resolved_identifiers(
    make_schema: Callable[[list[object]], bytes],
) -> None:
    model = visitor_gen.load_type_model(
        make_schema([{"type": "a-b", "named": True}, {"type": "node", "named": True}])
    )
    names = visitor_gen.resolve_names(model)

    interface = visitor_gen.synthesize_interface(model, names)

    assert [(op.kind, op.method_name) for op in interface.operations] == [
        ("a-b", "visit_a_DASHb"),
        ("node", "visit_node_"),
    ]


def test_operation_docs_describe_fields_and_children(arithmetic_schema: Path) -> None:
    model, names = _arith(arithmetic_schema)

    ops = {
        op.kind: op
        for op in visitor_gen.synthesize_interface(model, names).operations
    }

    assert ops["add_expr"].doc_lines == (
        "Visit a node of kind ``add_expr``.",
        "lhs: _expr (required)",
        "rhs: _expr (required)",
    )
    assert ops["root"].doc_lines[1] == "children: _expr (required)"
    assert ops["number"].doc_lines == ("Visit a node of kind ``number``.",)


def test_describe_field_quotes_anonymous_tokens_and_flags_multiple() -> None:
    spec = visitor_gen.FieldSpec(
        required=False,
        multiple=True,
        types=frozenset(
            {visitor_gen.TypeRef("+", False), visitor_gen.TypeRef("expr", True)}
        ),
    )

    assert (
        visitor_gen.describe_field("operands", spec)
        == "operands: '+', expr (optional, multiple)"
    )


def test_dispatch_table_matches_interface_exactly(arithmetic_schema: Path) -> None:
    model, names = _arith(arithmetic_schema)

    interface = visitor_gen.synthesize_interface(model, names)
    dispatch = visitor_gen.synthesize_dispatch(model, names)

    assert dispatch.entry_point == "dispatch"
    assert [(e.kind, e.method_name) for e in dispatch.entries] == [
        (op.kind, op.method_name) for op in interface.operations
    ]


def test_dispatch_supertypes_expand_unions(arithmetic_schema: Path) -> None:
    model, names = _arith(arithmetic_schema)

    dispatch = visitor_gen.synthesize_dispatch(model, names)

    assert dispatch.supertypes == (
        (
            "_expr",
            ("add_expr", "div_expr", "mul_expr", "number", "paren_expr", "sub_expr"),
        ),
    )


def test_schema_without_unions_has_no_supertypes(fizzbuzz_schema: Path) -> None:
    model = visitor_gen.load_type_model(fizzbuzz_schema.read_bytes())

    dispatch = visitor_gen.synthesize_dispatch(model, visitor_gen.resolve_names(model))

    assert dispatch.supertypes == ()
    assert [e.kind for e in dispatch.entries] == ["source_file", "buzz", "fizz"]
