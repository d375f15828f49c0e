#!/usr/bin/env python3
"""
Storefront Backend Startup Script
This script starts the FastAPI server with all services.
"""

import uvicorn
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info("Starting Storefront Backend...")
    logger.info("Available endpoints:")
    logger.info("  - Health Check: GET /health")
    logger.info("  - Login: POST /api/login")
    logger.info("  - Products: GET/POST /api/products, PUT/DELETE /api/products/{id}")
    logger.info("  - Checkout: POST /api/orders")
    logger.info("  - Orders: GET /api/orders/{id}, PATCH /api/orders/{id}/status")
    logger.info("  - API Docs: http://localhost:8000/docs")

    uvicorn.run(
        "storefront.main:app",
        host="0.0.0.0",
        port=8000,
        workers=2,
        log_level="info"
    )
