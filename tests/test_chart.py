"""Tests for the chart of accounts."""

from datetime import datetime, UTC

import pytest

from cashledger.domain.chart import build_tree
from cashledger.domain.entities import LedgerAccount
from cashledger.domain.enums import LedgerClass
from cashledger.domain.errors import ConflictError, NotFoundError, ValidationError


def node(node_id, code, parent_id=None, imputable=True, classification=LedgerClass.ASSET):
    return LedgerAccount(
        id=node_id,
        code=code,
        name=f"Cuenta {code}",
        classification=classification,
        level=code.count(".") + 1,
        imputable=imputable,
        active=True,
        created_at=datetime.now(UTC),
        parent_id=parent_id,
    )


class TestBuildTree:
    """Tests for the pure tree builder."""

    def test_links_children_in_code_order(self):
        tree = build_tree(
            [
                node(3, "1.1.02", parent_id=2),
                node(1, "1", imputable=False),
                node(2, "1.1", parent_id=1, imputable=False),
                node(4, "1.1.01", parent_id=2),
            ]
        )

        assert tree.root_ids == (1,)
        assert [child.code for child in tree.children(2)] == ["1.1.01", "1.1.02"]
        assert [(n.code, depth) for n, depth in tree.walk()] == [
            ("1", 0),
            ("1.1", 1),
            ("1.1.01", 2),
            ("1.1.02", 2),
        ]
        assert [n.code for n in tree.path(3)] == ["1", "1.1", "1.1.02"]

    def test_unresolvable_parent_becomes_root(self):
        tree = build_tree([node(1, "1", imputable=False), node(5, "9.1", parent_id=77)])

        assert set(tree.root_ids) == {1, 5}
        assert tree.is_root(5)

    def test_cycle_rejected(self):
        with pytest.raises(ValidationError, match="cycle"):
            build_tree([node(1, "1", parent_id=2), node(2, "2", parent_id=1)])

    def test_self_parent_rejected(self):
        with pytest.raises(ValidationError):
            build_tree([node(1, "1", parent_id=1)])

    def test_rebuild_is_repeatable(self):
        records = [node(1, "1", imputable=False), node(2, "1.1", parent_id=1)]

        assert build_tree(records) == build_tree(list(reversed(records)))

    def test_empty(self):
        tree = build_tree([])

        assert len(tree) == 0
        assert tree.roots == []


class TestChartOfAccountsService:
    """Tests for ChartOfAccountsService."""

    def test_levels_and_classification_inherited(self, chart_service):
        root = chart_service.create_node("1", "Activo", classification="ACTIVO", imputable=False)
        group = chart_service.create_node("1.1", "Corriente", parent_id=root, imputable=False)
        leaf = chart_service.create_node("1.1.01", "Caja", parent_id=group)

        created = chart_service.require_node(leaf)
        assert created.level == 3
        assert created.classification is LedgerClass.ASSET
        assert created.imputable is True

    def test_root_needs_classification(self, chart_service):
        with pytest.raises(ValidationError, match="classification"):
            chart_service.create_node("9", "Sin clase")

    def test_code_and_name_required(self, chart_service):
        with pytest.raises(ValidationError, match="code"):
            chart_service.create_node("", "Nombre", classification=LedgerClass.ASSET)
        with pytest.raises(ValidationError, match="name"):
            chart_service.create_node("9", " ", classification=LedgerClass.ASSET)

    def test_classification_mismatch_with_parent(self, chart_service, sample_chart):
        with pytest.raises(ValidationError, match="does not match"):
            chart_service.create_node(
                "1.1.09", "Otro", classification=LedgerClass.EXPENSE, parent_id=sample_chart["1.1"]
            )

    def test_imputable_parent_rejected(self, chart_service, sample_chart):
        with pytest.raises(ValidationError, match="imputable"):
            chart_service.create_node("1.1.01.1", "Sub caja", parent_id=sample_chart["1.1.01"])

    def test_depth_limited_to_five_levels(self, chart_service):
        parent = chart_service.create_node("1", "N1", classification=LedgerClass.ASSET, imputable=False)
        for level in range(2, 6):
            parent = chart_service.create_node(
                f"1{'.1' * (level - 1)}", f"N{level}", parent_id=parent, imputable=False
            )

        with pytest.raises(ValidationError, match="5 levels"):
            chart_service.create_node("1.1.1.1.1.1", "N6", parent_id=parent)

    def test_duplicate_code_conflicts(self, chart_service, sample_chart):
        with pytest.raises(ConflictError):
            chart_service.create_node("1.1.01", "Caja repetida", parent_id=sample_chart["1.1"])

    def test_missing_parent(self, chart_service):
        with pytest.raises(NotFoundError):
            chart_service.create_node("1.1", "Huérfana", parent_id=404)

    def test_childless_aggregator_allowed_and_reported(self, chart_service, sample_chart):
        chart_service.create_node("6", "Cuentas de orden", classification="ACTIVO", imputable=False)

        empty = chart_service.find_empty_aggregators()

        assert [n.code for n in empty] == ["6"]

    def test_update_node(self, chart_service, sample_chart):
        chart_service.update_node(sample_chart["1.1.01"], name="Caja general", description="Efectivo")

        updated = chart_service.require_node(sample_chart["1.1.01"])
        assert updated.name == "Caja general"
        assert updated.description == "Efectivo"

    def test_update_to_aggregator_with_postings_conflicts(
        self, chart_service, sample_chart, sample_account, make_transaction
    ):
        make_transaction(sample_account.id, 10, ledger_account_id=sample_chart["5.1.01"])

        with pytest.raises(ConflictError, match="postings"):
            chart_service.update_node(sample_chart["5.1.01"], imputable=False)

    def test_update_aggregator_with_children_to_imputable_conflicts(self, chart_service, sample_chart):
        with pytest.raises(ConflictError, match="sub-accounts"):
            chart_service.update_node(sample_chart["1.1"], imputable=True)

    def test_deactivate_referenced_by_transaction_conflicts(
        self, chart_service, sample_chart, sample_account, make_transaction
    ):
        make_transaction(sample_account.id, 10, ledger_account_id=sample_chart["5.1.01"])

        with pytest.raises(ConflictError, match="1 posting"):
            chart_service.deactivate_node(sample_chart["5.1.01"])

    def test_deactivate_referenced_by_account_conflicts(self, chart_service, account_service, sample_chart):
        account_service.create_account(
            name="Caja central", kind="CAJA_CHICA", ledger_account_id=sample_chart["1.1.01"]
        )

        with pytest.raises(ConflictError):
            chart_service.deactivate_node(sample_chart["1.1.01"])

    def test_deactivate_with_active_children_conflicts(self, chart_service, sample_chart):
        with pytest.raises(ConflictError, match="active sub-account"):
            chart_service.deactivate_node(sample_chart["5.2"])

    def test_deactivate_unreferenced_leaf(self, chart_service, sample_chart):
        chart_service.deactivate_node(sample_chart["5.2.03"])

        codes = [n.code for n in chart_service.list_nodes()]
        assert "5.2.03" not in codes
        assert "5.2.03" in [n.code for n in chart_service.list_nodes(include_inactive=True)]

    def test_list_nodes_filters(self, chart_service, sample_chart):
        income = chart_service.list_nodes(classification="INGRESO")
        leaves = chart_service.list_nodes(classification=LedgerClass.INCOME, imputable=True)

        assert [n.code for n in income] == ["4", "4.1", "4.1.01", "4.1.02", "4.2"]
        assert [n.code for n in leaves] == ["4.1.01", "4.1.02", "4.2"]

    def test_get_tree_from_store(self, chart_service, sample_chart):
        tree = chart_service.get_tree()

        assert [root.code for root in tree.roots] == ["1", "2", "3", "4", "5"]
        assert [child.code for child in tree.children(sample_chart["3"])] == ["3.1", "3.2"]
