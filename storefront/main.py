"""FastAPI application for the storefront backend."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from storefront.config import IMAGE_DIR
from storefront.container import Services, build_services
from storefront.db.redis_client import RedisClient
from storefront.errors import InvalidToken, StorefrontError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Pydantic models for request/response
class LoginRequest(BaseModel):
    username: str
    password: str


class OrderItemRequest(BaseModel):
    # Left untyped so CheckoutService reports InvalidQuantity and ProductNotFound itself
    productId: Any = None
    quantity: Any = None


class OrderRequest(BaseModel):
    customerName: Optional[str] = None
    address: Optional[str] = None
    items: list[OrderItemRequest] = []


class StatusRequest(BaseModel):
    status: str


def _http_error(e: StorefrontError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_dict())


def get_services(request: Request) -> Services:
    return request.app.state.services


def require_admin(
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> dict:
    """Verified caller identity for administrative endpoints."""
    try:
        identity = services.auth.verify_header(authorization)
    except StorefrontError as e:
        raise _http_error(e)
    if identity.get("role") != "admin":
        raise _http_error(InvalidToken("Admin role required"))
    return identity


def _read_upload(image: Optional[UploadFile]) -> tuple[str, bytes] | None:
    if image is None or not image.filename:
        return None
    data = image.file.read()
    return (image.filename, data) if data else None


def create_app(services: Services | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        app.state.services = services or build_services(cache=RedisClient())
        logger.info("Storefront services started")
        yield
        if owned:
            app.state.services.close()

    app = FastAPI(
        title="Storefront API",
        description="Storefront backend with transactional checkout and order management",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check(services: Services = Depends(get_services)):
        """Health check endpoint."""
        try:
            services.db.ping()
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            raise HTTPException(status_code=503, detail="Database unavailable")
        return {"status": "healthy", "service": "Storefront API"}

    @app.post("/api/login")
    def login(request: LoginRequest, services: Services = Depends(get_services)):
        """Issue a token for an administrator."""
        try:
            token = services.auth.login(request.username, request.password)
            return {"success": True, "token": token}
        except StorefrontError as e:
            raise _http_error(e)
        except Exception as e:
            logger.error(f"Error during login: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    # Catalog Endpoints
    @app.get("/api/products")
    def list_products(services: Services = Depends(get_services)):
        """List all products, newest first."""
        try:
            return {"success": True, "data": services.catalog.list_products()}
        except Exception as e:
            logger.error(f"Error listing products: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    @app.post("/api/products")
    def create_product(
        name: str = Form(...),
        price: str = Form(...),
        stock: str = Form(...),
        description: Optional[str] = Form(None),
        categoryId: Optional[int] = Form(None),
        image: Optional[UploadFile] = File(None),
        services: Services = Depends(get_services),
        admin: dict = Depends(require_admin),
    ):
        """Create a product with an optional image."""
        try:
            product = services.catalog.create_product(
                name=name,
                price=price,
                stock=stock,
                description=description,
                category_id=categoryId,
                image=_read_upload(image),
            )
            return {"success": True, "data": product}
        except StorefrontError as e:
            raise _http_error(e)
        except Exception as e:
            logger.error(f"Error creating product: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    @app.put("/api/products/{product_id}")
    def update_product(
        product_id: int,
        name: Optional[str] = Form(None),
        price: Optional[str] = Form(None),
        stock: Optional[str] = Form(None),
        description: Optional[str] = Form(None),
        categoryId: Optional[int] = Form(None),
        image: Optional[UploadFile] = File(None),
        services: Services = Depends(get_services),
        admin: dict = Depends(require_admin),
    ):
        """Update a product; a new image replaces the stored URL."""
        try:
            product = services.catalog.update_product(
                product_id,
                name=name,
                price=price,
                stock=stock,
                description=description,
                category_id=categoryId,
                image=_read_upload(image),
            )
            return {"success": True, "data": product}
        except StorefrontError as e:
            raise _http_error(e)
        except Exception as e:
            logger.error(f"Error updating product: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    @app.delete("/api/products/{product_id}")
    def delete_product(
        product_id: int,
        services: Services = Depends(get_services),
        admin: dict = Depends(require_admin),
    ):
        """Delete a product, detaching it from historical orders."""
        try:
            return services.catalog.delete_product(product_id)
        except StorefrontError as e:
            raise _http_error(e)
        except Exception as e:
            logger.error(f"Error deleting product: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    # Order Endpoints
    @app.post("/api/orders")
    def place_order(
        request: OrderRequest,
        idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
        services: Services = Depends(get_services),
    ):
        """Checkout: place an order for the submitted cart."""
        try:
            placed = services.checkout.place_order(
                request.customerName,
                request.address,
                [{"product_id": item.productId, "quantity": item.quantity} for item in request.items],
                idempotency_key=idempotency_key,
            )
            return placed.to_dict()
        except StorefrontError as e:
            raise _http_error(e)
        except Exception as e:
            logger.error(f"Error during checkout: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    @app.get("/api/orders/{order_id}")
    def get_order(
        order_id: int,
        services: Services = Depends(get_services),
        admin: dict = Depends(require_admin),
    ):
        """Order with its items and the prices captured at checkout."""
        try:
            return {"success": True, "data": services.orders.get_order(order_id)}
        except StorefrontError as e:
            raise _http_error(e)
        except Exception as e:
            logger.error(f"Error getting order: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    @app.patch("/api/orders/{order_id}/status")
    def set_order_status(
        order_id: int,
        request: StatusRequest,
        services: Services = Depends(get_services),
        admin: dict = Depends(require_admin),
    ):
        """Move an order along pending -> processing -> completed, or cancel it."""
        try:
            return services.order_status.set_status(order_id, request.status, actor=admin)
        except StorefrontError as e:
            raise _http_error(e)
        except Exception as e:
            logger.error(f"Error updating order status: {e}")
            raise HTTPException(status_code=500, detail="Internal server error")

    app.mount("/images", StaticFiles(directory=IMAGE_DIR, check_dir=False), name="images")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
