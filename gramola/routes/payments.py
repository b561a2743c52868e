from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from ..utils.database import get_db
from ..controllers.payment_controller import PaymentController, StripeConfig
from ..models.payment import StripeTransaction
from ..schemas.payment import PlanOut, PrepayIn, TransactionOut, ConfirmIn, ConfirmOut

router = APIRouter()

_ctrl: PaymentController | None = None


def get_payment_controller() -> PaymentController:
    global _ctrl
    if _ctrl is None:
        _ctrl = PaymentController(StripeConfig.from_env())
    return _ctrl


_ERRORS = {
    "plan_not_found": (404, "El plan de pago no existe en la BD"),
    "user_not_found": (404, "Usuario no encontrado"),
    "transaction_already_confirmed": (409, "La transacción ya fue confirmada por otro usuario"),
    "missing_payment_intent": (400, "No se encuentra el id del PaymentIntent"),
    "identity_unresolved": (400, "No se pudo resolver el usuario."),
}


def _http_error(e: ValueError, prefix: str) -> HTTPException:
    code = str(e)
    if code in _ERRORS:
        status, detail = _ERRORS[code]
        return HTTPException(status_code=status, detail=detail)
    if code.startswith("payment_not_completed:"):
        status = code.split(":", 1)[1]
        return HTTPException(
            status_code=400, detail=f"{prefix}: El pago no está completado. Estado: {status}"
        )
    return HTTPException(status_code=400, detail=f"{prefix}: {code}")


def _transaction_out(tx: StripeTransaction) -> TransactionOut:
    return TransactionOut(
        id=tx.id,
        data=tx.get_data(),
        user=tx.email,
        clientSecret=tx.client_secret,
        stripePaymentIntentId=tx.payment_intent_id,
    )


@router.get("/plans", response_model=list[PlanOut])
def get_plans(
    db: Session = Depends(get_db),
    ctrl: PaymentController = Depends(get_payment_controller),
):
    return ctrl.get_available_plans(db)


@router.post("/prepay", response_model=TransactionOut)
def prepay(
    body: PrepayIn,
    db: Session = Depends(get_db),
    ctrl: PaymentController = Depends(get_payment_controller),
):
    if not body.planId:
        raise HTTPException(status_code=400, detail="Falta el ID del plan")
    try:
        tx = ctrl.prepay(db, body.planId)
    except ValueError as e:
        raise _http_error(e, "Error al preparar el pago")
    except Exception as e:
        # Erreurs Stripe (clé invalide, réseau...) -> 400
        raise HTTPException(status_code=400, detail=f"Error al preparar el pago: {e}")
    return _transaction_out(tx)


@router.post("/confirm", response_model=ConfirmOut)
def confirm(
    body: ConfirmIn,
    db: Session = Depends(get_db),
    ctrl: PaymentController = Depends(get_payment_controller),
):
    if not body.transactionId:
        raise HTTPException(status_code=400, detail="Falta el ID de transacción")
    tx = ctrl.find_transaction(db, body.transactionId)
    if tx is None:
        raise HTTPException(status_code=404, detail="Transacción no registrada en el sistema")
    try:
        u = ctrl.confirm_transaction(db, tx, body.token)
    except ValueError as e:
        raise _http_error(e, "Error en la confirmación")
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Error en la confirmación: {e}")
    return ConfirmOut(
        status="succeeded",
        email=u.email,
        message="Operación confirmada y registrada en el historial",
    )


@router.get("/diag")
def diag(ctrl: PaymentController = Depends(get_payment_controller)):
    return ctrl.diag()
