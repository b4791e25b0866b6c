"""Enumerations for the ledger domain."""

from enum import Enum


class AccountKind(str, Enum):
    """Kind of cash holding."""

    CAJA_CHICA = "CAJA_CHICA"
    CUENTA_CORRIENTE = "CUENTA_CORRIENTE"
    CAJA_AHORRO = "CAJA_AHORRO"
    BILLETERA_VIRTUAL = "BILLETERA_VIRTUAL"
    INVERSION = "INVERSION"


class Direction(str, Enum):
    """Direction of a cash movement."""

    INCOME = "INGRESO"
    EXPENSE = "EGRESO"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.INCOME else -1


class IncomeCategory(str, Enum):
    COBRO_FACTURA = "COBRO_FACTURA"
    ANTICIPO_CLIENTE = "ANTICIPO_CLIENTE"
    REINTEGRO = "REINTEGRO"
    RENDIMIENTO_INVERSION = "RENDIMIENTO_INVERSION"
    RESCATE_INVERSION = "RESCATE_INVERSION"
    TRANSFERENCIA_ENTRADA = "TRANSFERENCIA_ENTRADA"
    OTRO_INGRESO = "OTRO_INGRESO"


class ExpenseCategory(str, Enum):
    MATERIALES = "MATERIALES"
    MANO_DE_OBRA = "MANO_DE_OBRA"
    COMBUSTIBLE = "COMBUSTIBLE"
    HERRAMIENTAS = "HERRAMIENTAS"
    VIATICOS = "VIATICOS"
    SUBCONTRATISTA = "SUBCONTRATISTA"
    IMPUESTOS = "IMPUESTOS"
    SERVICIOS = "SERVICIOS"
    TRASPASO_INVERSION = "TRASPASO_INVERSION"
    TRANSFERENCIA_SALIDA = "TRANSFERENCIA_SALIDA"
    OTRO_EGRESO = "OTRO_EGRESO"


class PaymentMethod(str, Enum):
    EFECTIVO = "EFECTIVO"
    TRANSFERENCIA = "TRANSFERENCIA"
    CHEQUE = "CHEQUE"
    ECHEQ = "ECHEQ"
    TARJETA_DEBITO = "TARJETA_DEBITO"
    TARJETA_CREDITO = "TARJETA_CREDITO"
    MERCADOPAGO = "MERCADOPAGO"


class TransactionState(str, Enum):
    """Lifecycle state of a movimiento."""

    PENDIENTE = "PENDIENTE"
    CONFIRMADO = "CONFIRMADO"
    CONCILIADO = "CONCILIADO"
    ANULADO = "ANULADO"

    @property
    def is_posted(self) -> bool:
        """True when the transaction contributes to the account balance."""
        return self in POSTED_STATES


POSTED_STATES = frozenset({TransactionState.CONFIRMADO, TransactionState.CONCILIADO})
OPEN_STATES = frozenset({TransactionState.PENDIENTE, TransactionState.CONFIRMADO})


class LedgerClass(str, Enum):
    """Top-level classification of a chart-of-accounts node."""

    ASSET = "ACTIVO"
    LIABILITY = "PASIVO"
    EQUITY = "PATRIMONIO"
    INCOME = "INGRESO"
    EXPENSE = "GASTO"

    @property
    def normal_sign(self) -> int:
        """Sign that turns a debit sum into the node's natural balance."""
        return 1 if self in (LedgerClass.ASSET, LedgerClass.EXPENSE) else -1


# Payment method preselected per account kind
DEFAULT_PAYMENT_METHOD = {
    AccountKind.CAJA_CHICA: PaymentMethod.EFECTIVO,
    AccountKind.CUENTA_CORRIENTE: PaymentMethod.TRANSFERENCIA,
    AccountKind.CAJA_AHORRO: PaymentMethod.TRANSFERENCIA,
    AccountKind.BILLETERA_VIRTUAL: PaymentMethod.MERCADOPAGO,
    AccountKind.INVERSION: PaymentMethod.TRANSFERENCIA,
}
