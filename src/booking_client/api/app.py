"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from booking_client.api.models import (
    CartItemRequest,
    CartItemUpdate,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    FailedVendorModel,
    NotificationModel,
    NotificationsResponse,
    OrderModel,
    SessionRequest,
    StatusUpdate,
    StockSubscriptionModel,
)
from booking_client.app_logging import configure_logging
from booking_client.config import Settings
from booking_client.containers import (
    SessionContainer,
    SessionFactory,
    SessionHolder,
    build_session,
)
from booking_client.domain import errors
from booking_client.domain.catalog import ItemKind
from booking_client.domain.session import SessionUser, UserType


def create_app(
    settings: Settings, session_factory: SessionFactory = build_session
) -> FastAPI:
    """Create a FastAPI app that manages one signed-in session at a time."""
    configure_logging(logging.DEBUG if settings.debug else logging.INFO)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.holder.close()

    app = FastAPI(lifespan=lifespan)
    app.state.holder = SessionHolder(settings=settings, factory=session_factory)

    @app.exception_handler(errors.BookingClientError)
    async def booking_error(request: Request, exc: errors.BookingClientError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code == status.HTTP_401_UNAUTHORIZED:
            logger.warning("Closing session after auth failure: %s", exc)
            await request.app.state.holder.close()
        content: dict[str, object] = {"detail": str(exc)}
        if isinstance(exc, errors.AllOrdersFailedError):
            content["failed"] = [
                FailedVendorModel(
                    business_id=outcome.business_id,
                    business_name=outcome.business_name,
                    error=outcome.error,
                ).model_dump()
                for outcome in exc.outcomes
            ]
        return JSONResponse(status_code=status_code, content=content)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/session")
    async def open_session(payload: SessionRequest, request: Request) -> dict[str, str]:
        """Start a session for an already authenticated user."""
        holder: SessionHolder = request.app.state.holder
        user = SessionUser(
            user_id=payload.user_id,
            user_type=payload.user_type,
            email=payload.email,
            full_name=payload.full_name,
        )
        await holder.open(user, payload.token)
        return {"status": "ok", "user_id": user.user_id}

    @app.delete("/session")
    async def close_session(request: Request) -> dict[str, str]:
        """Sign out and drop every session-scoped service."""
        await request.app.state.holder.close()
        return {"status": "ok"}

    @app.get("/cart")
    async def get_cart(session: SessionContainer = Depends(require_session)) -> CartResponse:
        return CartResponse.from_snapshot(session.cart.snapshot())

    @app.post("/cart/items")
    async def add_cart_item(
        payload: CartItemRequest, session: SessionContainer = Depends(require_session)
    ) -> CartResponse:
        """Add a catalogue item, or bump the quantity of an existing line."""
        session.cart.add(
            payload.to_item(),
            payload.to_vendor(),
            booking_date=payload.booking_date,
            selected_dishes=[dish.to_domain() for dish in payload.selected_dishes],
            quantity=payload.quantity,
        )
        return CartResponse.from_snapshot(session.cart.snapshot())

    @app.patch("/cart/items/{kind}/{item_id}")
    async def update_cart_item(
        kind: ItemKind,
        item_id: str,
        payload: CartItemUpdate,
        session: SessionContainer = Depends(require_session),
    ) -> CartResponse:
        """Change the quantity or booking date of one line item."""
        if payload.booking_date is not None or payload.clear_booking_date:
            session.cart.update_booking_date(item_id, kind, payload.booking_date)
        if payload.quantity is not None:
            session.cart.update_quantity(item_id, kind, payload.quantity)
        return CartResponse.from_snapshot(session.cart.snapshot())

    @app.delete("/cart/items/{kind}/{item_id}")
    async def remove_cart_item(
        kind: ItemKind, item_id: str, session: SessionContainer = Depends(require_session)
    ) -> CartResponse:
        session.cart.remove(item_id, kind)
        return CartResponse.from_snapshot(session.cart.snapshot())

    @app.delete("/cart")
    async def clear_cart(session: SessionContainer = Depends(require_session)) -> CartResponse:
        session.cart.clear()
        return CartResponse.from_snapshot(session.cart.snapshot())

    @app.post("/checkout")
    async def checkout(
        payload: CheckoutRequest, session: SessionContainer = Depends(require_session)
    ) -> CheckoutResponse:
        """Place one order per vendor in the cart."""
        result = await session.checkout_service.checkout(payload.to_form(), session.user)
        return CheckoutResponse(
            orders=[OrderModel.from_domain(order) for order in result.orders],
            failed=[
                FailedVendorModel(
                    business_id=outcome.business_id,
                    business_name=outcome.business_name,
                    error=outcome.error,
                )
                for outcome in result.failed
            ],
            partial=result.partial,
            cart=CartResponse.from_snapshot(session.cart.snapshot()),
        )

    @app.get("/notifications")
    async def list_notifications(
        refresh: bool = False, session: SessionContainer = Depends(require_session)
    ) -> NotificationsResponse:
        """Return the merged notification feed, optionally polling first."""
        reconciler = session.notification_reconciler
        if refresh:
            await reconciler.refresh()
        return _notifications_response(session)

    @app.post("/notifications/read-all")
    async def mark_all_notifications_read(
        session: SessionContainer = Depends(require_session),
    ) -> NotificationsResponse:
        await session.notification_reconciler.mark_all_as_read()
        return _notifications_response(session)

    @app.post("/notifications/{notification_id}/read")
    async def mark_notification_read(
        notification_id: int, session: SessionContainer = Depends(require_session)
    ) -> NotificationsResponse:
        await session.notification_reconciler.mark_as_read(notification_id)
        return _notifications_response(session)

    @app.get("/orders")
    async def list_orders(
        business_id: str | None = None,
        session: SessionContainer = Depends(require_session),
    ) -> dict[str, list[OrderModel]]:
        """List the user's orders, or a business's orders for vendors."""
        tracking = session.order_tracking_service
        if business_id is not None:
            if session.user.user_type is UserType.CLIENT:
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
            orders = await tracking.list_for_business(business_id)
        else:
            orders = await tracking.list_for_user(session.user.user_id)
        return {"orders": [OrderModel.from_domain(order) for order in orders]}

    @app.put("/orders/{order_id}/status")
    async def update_order_status(
        order_id: str,
        payload: StatusUpdate,
        session: SessionContainer = Depends(require_session),
    ) -> OrderModel:
        order = await session.order_tracking_service.update_status(
            order_id, payload.status
        )
        return OrderModel.from_domain(order)

    @app.get("/stock-subscriptions")
    async def list_stock_subscriptions(
        session: SessionContainer = Depends(require_session),
    ) -> dict[str, list[StockSubscriptionModel]]:
        subscriptions = await session.restock_subscriptions().list_active()
        return {
            "subscriptions": [
                StockSubscriptionModel.from_domain(sub) for sub in subscriptions
            ]
        }

    @app.delete("/stock-subscriptions/{kind}/{item_id}")
    async def cancel_stock_subscription(
        kind: ItemKind, item_id: str, session: SessionContainer = Depends(require_session)
    ) -> dict[str, str]:
        await session.restock_subscriptions().cancel(item_id, kind)
        return {"status": "ok"}

    return app


async def require_session(request: Request) -> SessionContainer:
    """Return the active session, rejecting requests without a live one."""
    holder: SessionHolder = request.app.state.holder
    session = holder.current
    if session is not None and session.expired:
        await holder.close()
        session = None
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="No active session"
        )
    return session


def _status_for(exc: errors.BookingClientError) -> int:
    if isinstance(exc, errors.ValidationError):
        return 422
    if isinstance(exc, errors.NotAuthenticatedError | errors.SessionExpiredError):
        return status.HTTP_401_UNAUTHORIZED
    return status.HTTP_502_BAD_GATEWAY


def _notifications_response(session: SessionContainer) -> NotificationsResponse:
    reconciler = session.notification_reconciler
    return NotificationsResponse(
        notifications=[
            NotificationModel.from_domain(
                record, synced=reconciler.is_synced(record.notification_id)
            )
            for record in reconciler.notifications
        ],
        unread_count=reconciler.unread_count,
        error=reconciler.error,
    )
