import os

import uvicorn

from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=os.getenv("SWELLWATCH_LOG_LEVEL", "INFO"))
    port = int(os.getenv("PORT", 8000))
    logger.info(f"Starting SwellWatch on port {port}")

    uvicorn.run(
        "swellwatch.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
    )
