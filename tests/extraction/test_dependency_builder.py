"""
Tests for the Dependency Graph Builder
"""

import unittest

from twbgraph.core.models import FieldRecord, FieldCategory, DependencyEdge, DependencyMode
from twbgraph.extraction.dependency_builder import (
    build_token_scan_edges,
    build_containment_edges,
    build_dependencies,
    close_graph,
)
from twbgraph.extraction.tokens import scan_formula_tokens


def calc(field_id, caption, formula, sequence=0, rewritten=None):
    """Calculated field with an optional rewritten formula"""
    record = FieldRecord(
        id=field_id,
        name=field_id,
        caption=caption,
        category=FieldCategory.CALCULATED_FIELD,
        sequence=sequence,
        datasource_name="Sales",
        datasource_caption="Sales",
        calculation_formula=formula,
    )
    if rewritten is not None:
        record.calculation_formula = rewritten
    return record


def base(field_id, caption, sequence=0):
    """Default field"""
    return FieldRecord(
        id=field_id,
        name=field_id,
        caption=caption,
        category=FieldCategory.DEFAULT_FIELD,
        sequence=sequence,
        datasource_name="Sales",
        datasource_caption="Sales",
    )


class TestScanFormulaTokens(unittest.TestCase):
    """Bracket token extraction"""

    def test_tokens_in_order_with_repeats(self):
        self.assertEqual(scan_formula_tokens("[a] + [b c] - [a]"), ["a", "b c", "a"])

    def test_empty_brackets_ignored(self):
        self.assertEqual(scan_formula_tokens("[] + [x]"), ["x"])

    def test_literal_brackets_in_strings(self):
        self.assertEqual(scan_formula_tokens("'[' + [Region] + ']'"), ["Region"])

    def test_none_and_empty(self):
        self.assertEqual(scan_formula_tokens(None), [])
        self.assertEqual(scan_formula_tokens(""), [])


class TestTokenScanEdges(unittest.TestCase):
    """Token-scan mode"""

    def test_edges_from_tokens(self):
        records = [base("[Sales]", "Sales"), base("[Cost]", "Cost"),
                   calc("[Profit Ratio]", "Profit Ratio", "[Sales]/[Cost]")]

        edges = build_token_scan_edges(records)

        self.assertEqual(edges, [
            DependencyEdge("Sales", "Profit Ratio"),
            DependencyEdge("Cost", "Profit Ratio"),
        ])

    def test_self_reference_excluded(self):
        records = [calc("[Calculation_7]", "Running", "[Calculation_7]", rewritten="[Running] + [Step]")]

        edges = build_token_scan_edges(records)

        self.assertEqual(edges, [DependencyEdge("Step", "Running")])

    def test_repeated_reference_repeats_edge(self):
        records = [calc("[Sq]", "Square", "[Sales]*[Sales]")]

        edges = build_token_scan_edges(records)

        self.assertEqual(len(edges), 2)
        self.assertEqual(set(edges), {DependencyEdge("Sales", "Square")})

    def test_uses_rewritten_formula(self):
        records = [calc("[Calculation_2]", "Double", "[Calculation_1]*2", rewritten="[Profit Ratio]*2")]

        self.assertEqual(build_token_scan_edges(records), [DependencyEdge("Profit Ratio", "Double")])


class TestContainmentEdges(unittest.TestCase):
    """Containment mode"""

    def test_edges_from_original_formula_ids(self):
        records = [
            base("[Sales]", "Sales"),
            calc("[Calculation_1]", "Profit Ratio", "[Profit]/[SALES]", rewritten="[Profit]/[Sales]"),
            base("[Profit]", "Profit"),
        ]

        edges = build_containment_edges(records)

        self.assertEqual(edges, [
            DependencyEdge("Sales", "Profit Ratio"),
            DependencyEdge("Profit", "Profit Ratio"),
        ])

    def test_identifier_prefix_not_matched(self):
        records = [base("[Sales]", "Sales"), calc("[Calc]", "Calc", "[Sales Amount]*2")]

        self.assertEqual(build_containment_edges(records), [])

    def test_no_self_edge(self):
        records = [calc("[Calc]", "Calc", "[Calc] + 1")]

        self.assertEqual(build_containment_edges(records), [])

    def test_literal_open_bracket_before_reference(self):
        records = [base("[Region]", "Region"), calc("[Calculation_1]", "Label", "'[' + [Region] + ']'")]

        self.assertEqual(build_containment_edges(records), [DependencyEdge("Region", "Label")])

    def test_one_edge_per_pair(self):
        records = [base("[Sales]", "Sales"), calc("[Sq]", "Square", "[Sales]*[Sales]")]

        self.assertEqual(build_containment_edges(records), [DependencyEdge("Sales", "Square")])


class TestCloseGraph(unittest.TestCase):
    """Placeholder synthesis"""

    def test_placeholder_for_unknown_source(self):
        records = [calc("[Doubled]", "Doubled", "[External Metric]*2")]
        edges = build_token_scan_edges(records)

        placeholders = close_graph(records, edges, next_sequence=1)

        self.assertEqual(len(placeholders), 1)
        placeholder = placeholders[0]
        self.assertIs(records[-1], placeholder)
        self.assertEqual(placeholder.caption, "External Metric")
        self.assertEqual(placeholder.name, "External Metric")
        self.assertEqual(placeholder.id, "[External Metric]")
        self.assertEqual(placeholder.category, FieldCategory.DEFAULT_FIELD)
        self.assertEqual(placeholder.datasource_name, "Unknown")
        self.assertEqual(placeholder.datasource_caption, "Unknown")
        self.assertEqual(placeholder.sequence, 1)

    def test_one_placeholder_per_name(self):
        records = [calc("[A]", "A", "[X] + [X] + [Y]")]
        edges = build_token_scan_edges(records)

        placeholders = close_graph(records, edges, next_sequence=10)

        self.assertEqual([p.caption for p in placeholders], ["X", "Y"])
        self.assertEqual([p.sequence for p in placeholders], [10, 11])

    def test_known_sources_untouched(self):
        records = [base("[Sales]", "Sales"), calc("[A]", "A", "[Sales]")]

        self.assertEqual(close_graph(records, build_token_scan_edges(records), 2), [])
        self.assertEqual(len(records), 2)


class TestBuildDependencies(unittest.TestCase):
    """Mode selection and closure"""

    def test_every_endpoint_exists(self):
        records = [
            base("[Sales]", "Sales"),
            calc("[A]", "A", "[Sales] + [Ghost]"),
            calc("[B]", "B", "[A] * [Other Ghost]"),
        ]

        edges = build_dependencies(records, DependencyMode.TOKEN_SCAN, next_sequence=3)
        captions = {r.caption for r in records}

        for edge in edges:
            self.assertIn(edge.source, captions)
            self.assertIn(edge.target, captions)

    def test_modes_diverge_on_undeclared_and_repeated_references(self):
        def fresh():
            return [
                base("[Sales]", "Sales"),
                calc("[Calculation_1]", "Square", "[Sales]*[Sales] + [Ghost]"),
            ]

        token_records = fresh()
        token_edges = build_dependencies(token_records, DependencyMode.TOKEN_SCAN, next_sequence=2)
        containment_records = fresh()
        containment_edges = build_dependencies(containment_records, DependencyMode.CONTAINMENT, next_sequence=2)

        self.assertEqual(token_edges, [
            DependencyEdge("Sales", "Square"),
            DependencyEdge("Sales", "Square"),
            DependencyEdge("Ghost", "Square"),
        ])
        self.assertEqual(containment_edges, [DependencyEdge("Sales", "Square")])
        self.assertEqual(len(token_records), 3)
        self.assertEqual(len(containment_records), 2)

    def test_modes_agree_when_captions_equal_identifiers(self):
        def fresh():
            return [base("[Sales]", "Sales"), base("[Cost]", "Cost"),
                    calc("[Profit Ratio]", "Profit Ratio", "[Sales]/[Cost]")]

        token_edges = build_dependencies(fresh(), DependencyMode.TOKEN_SCAN, next_sequence=3)
        containment_edges = build_dependencies(fresh(), DependencyMode.CONTAINMENT, next_sequence=3)

        self.assertEqual(sorted(token_edges, key=str), sorted(containment_edges, key=str))


if __name__ == '__main__':
    unittest.main()
