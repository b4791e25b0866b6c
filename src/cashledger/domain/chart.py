"""Chart of accounts domain service."""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from cashledger.database.base import Database
from cashledger.domain.entities import LedgerAccount
from cashledger.domain.enums import LedgerClass
from cashledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_ledger_code,
    ledger_account_not_found,
    ledger_deactivate_blocked,
)

logger = logging.getLogger(__name__)

MAX_LEVEL = 5


@dataclass(frozen=True)
class ChartTree:
    """Chart nodes keyed by id with child lists resolved by id.

    Children are held as ids rather than object references so the tree can be
    rebuilt from flat records at any time.
    """

    nodes: dict[int, LedgerAccount]
    child_ids: dict[int, tuple[int, ...]]
    root_ids: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    @property
    def roots(self) -> list[LedgerAccount]:
        return [self.nodes[node_id] for node_id in self.root_ids]

    def children(self, node_id: int) -> list[LedgerAccount]:
        return [self.nodes[child_id] for child_id in self.child_ids.get(node_id, ())]

    def is_root(self, node_id: int) -> bool:
        return node_id in self.root_ids

    def walk(self, node_id: Optional[int] = None) -> Iterator[tuple[LedgerAccount, int]]:
        """Yield (node, depth) pairs depth-first in code order.

        Args:
            node_id: Subtree to walk; the whole chart when omitted
        """
        start = [node_id] if node_id is not None else list(self.root_ids)
        stack = [(current, 0) for current in reversed(start)]
        while stack:
            current, depth = stack.pop()
            yield self.nodes[current], depth
            for child_id in reversed(self.child_ids.get(current, ())):
                stack.append((child_id, depth + 1))

    def path(self, node_id: int) -> list[LedgerAccount]:
        """Return the nodes from the root down to node_id."""
        parents = {
            child_id: parent_id
            for parent_id, ids in self.child_ids.items()
            for child_id in ids
        }
        chain = [self.nodes[node_id]]
        while chain[-1].id in parents:
            chain.append(self.nodes[parents[chain[-1].id]])
        return list(reversed(chain))


def build_tree(nodes: Iterable[LedgerAccount]) -> ChartTree:
    """Assemble parent/child links from flat chart records.

    A node whose parent is missing from the records becomes a root. Children
    are ordered by code.

    Args:
        nodes: Flat chart nodes

    Returns:
        ChartTree over the given nodes

    Raises:
        ValidationError: If the parent links form a cycle
    """
    index = {node.id: node for node in nodes}

    for node in index.values():
        seen = {node.id}
        parent_id = node.parent_id
        while parent_id is not None and parent_id in index:
            if parent_id in seen:
                raise ValidationError(
                    f"Ledger account '{node.code}' is part of a parent cycle"
                )
            seen.add(parent_id)
            parent_id = index[parent_id].parent_id

    children: dict[int, list[LedgerAccount]] = {}
    roots = []
    for node in index.values():
        if node.parent_id is not None and node.parent_id in index:
            children.setdefault(node.parent_id, []).append(node)
        else:
            roots.append(node)

    def by_code(items: list[LedgerAccount]) -> tuple[int, ...]:
        return tuple(item.id for item in sorted(items, key=lambda item: item.code))

    return ChartTree(
        nodes=index,
        child_ids={parent_id: by_code(items) for parent_id, items in children.items()},
        root_ids=by_code(roots),
    )


def parse_ledger_class(classification: LedgerClass | str) -> LedgerClass:
    try:
        return LedgerClass(classification)
    except ValueError:
        valid = ", ".join(c.value for c in LedgerClass)
        raise ValidationError(
            f"Invalid classification '{classification}'. Expected one of: {valid}"
        )


class ChartOfAccountsService:
    """Service for managing the chart of accounts (plan de cuentas)."""

    def __init__(self, db: Database):
        """Initialize chart of accounts service.

        Args:
            db: Database instance
        """
        self.db = db

    def require_node(self, node_id: int) -> LedgerAccount:
        """Get chart node by ID or raise NotFoundError."""
        node = self.db.get_ledger_account(node_id)
        if node is None:
            raise NotFoundError(ledger_account_not_found(node_id))
        return node

    def get_node_by_code(self, code: str) -> Optional[LedgerAccount]:
        return self.db.get_ledger_account_by_code(code)

    def create_node(
        self,
        code: str,
        name: str,
        classification: Optional[LedgerClass | str] = None,
        parent_id: Optional[int] = None,
        imputable: bool = True,
        description: Optional[str] = None,
    ) -> int:
        """Create a chart node.

        Child nodes inherit their parent's classification; a root must name
        one. Aggregators (imputable=False) may be created before their
        children.

        Args:
            code: Dot-notation code (e.g., "1.1.01")
            name: Node name
            classification: Required for roots, must match the parent otherwise
            parent_id: Optional parent node ID
            imputable: True for leaves that receive postings
            description: Optional description

        Returns:
            Node ID

        Raises:
            ValidationError: On missing code or name, bad classification,
                imputable parent or depth beyond the maximum level
            NotFoundError: If parent does not exist
            ConflictError: If the code already exists
        """
        code = (code or "").strip()
        name = (name or "").strip()
        if not code:
            raise ValidationError("Ledger account code is required")
        if not name:
            raise ValidationError("Ledger account name is required")
        if classification is not None:
            classification = parse_ledger_class(classification)

        if parent_id is not None:
            parent = self.require_node(parent_id)
            if parent.imputable:
                raise ValidationError(
                    f"Parent '{parent.code}' is imputable and cannot have sub-accounts"
                )
            if not parent.active:
                raise ValidationError(f"Parent '{parent.code}' is not active")
            if classification is not None and classification is not parent.classification:
                raise ValidationError(
                    f"Classification {classification.value} does not match parent "
                    f"'{parent.code}' ({parent.classification.value})"
                )
            classification = parent.classification
            level = parent.level + 1
        else:
            if classification is None:
                raise ValidationError("Root ledger accounts need a classification")
            level = 1

        if level > MAX_LEVEL:
            raise ValidationError(f"Chart of accounts is limited to {MAX_LEVEL} levels")
        if self.db.get_ledger_account_by_code(code) is not None:
            raise ConflictError(duplicate_ledger_code(code))

        node_id = self.db.create_ledger_account(
            code=code,
            name=name,
            classification=classification,
            level=level,
            parent_id=parent_id,
            imputable=imputable,
            description=description,
        )
        logger.info("Created ledger account %s '%s'", code, name)
        return node_id

    def update_node(
        self,
        node_id: int,
        code: Optional[str] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
        imputable: Optional[bool] = None,
    ) -> None:
        """Update a chart node.

        Raises:
            NotFoundError: If node not found
            ValidationError: On empty code or name
            ConflictError: On duplicate code, or when the imputable flag change
                would orphan postings or children
        """
        node = self.require_node(node_id)
        fields = {}

        if code is not None:
            code = code.strip()
            if not code:
                raise ValidationError("Ledger account code is required")
            existing = self.db.get_ledger_account_by_code(code)
            if existing is not None and existing.id != node_id:
                raise ConflictError(duplicate_ledger_code(code))
            fields["code"] = code
        if name is not None:
            if not name.strip():
                raise ValidationError("Ledger account name is required")
            fields["name"] = name.strip()
        if description is not None:
            fields["description"] = description
        if imputable is not None and imputable != node.imputable:
            if not imputable and self.db.count_ledger_postings(node_id) > 0:
                raise ConflictError(
                    f"Ledger account '{node.code}' has postings and cannot become an aggregator"
                )
            if imputable and self.db.count_active_children(node_id) > 0:
                raise ConflictError(
                    f"Ledger account '{node.code}' has sub-accounts and cannot become imputable"
                )
            fields["imputable"] = imputable

        if fields:
            self.db.update_ledger_account(node_id, **fields)

    def deactivate_node(self, node_id: int) -> None:
        """Deactivate a chart node.

        Raises:
            NotFoundError: If node not found
            ConflictError: If postings reference it or it has active children
        """
        node = self.require_node(node_id)
        posting_count = self.db.count_ledger_postings(node_id)
        active_children = self.db.count_active_children(node_id)
        if posting_count > 0 or active_children > 0:
            raise ConflictError(
                ledger_deactivate_blocked(node.code, posting_count, active_children)
            )
        self.db.set_ledger_account_active(node_id, False)
        logger.info("Deactivated ledger account %s", node.code)

    def list_nodes(
        self,
        classification: Optional[LedgerClass | str] = None,
        imputable: Optional[bool] = None,
        include_inactive: bool = False,
    ) -> list[LedgerAccount]:
        """List chart nodes ordered by code."""
        if classification is not None:
            classification = parse_ledger_class(classification)
        return self.db.list_ledger_accounts(
            include_inactive=include_inactive,
            classification=classification,
            imputable=imputable,
        )

    def get_tree(self, include_inactive: bool = False) -> ChartTree:
        """Get the chart as a tree."""
        return build_tree(self.db.list_ledger_accounts(include_inactive=include_inactive))

    def find_empty_aggregators(self, tree: Optional[ChartTree] = None) -> list[LedgerAccount]:
        """Return aggregator nodes that have no children yet."""
        if tree is None:
            tree = self.get_tree()
        return [
            node
            for node, _ in tree.walk()
            if not node.imputable and not tree.child_ids.get(node.id)
        ]
