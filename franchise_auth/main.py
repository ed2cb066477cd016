"""
Franchise auth - server entry point.

    python -m franchise_auth.main
    uvicorn franchise_auth.api.app:create_app --factory --reload
"""

from __future__ import annotations

import uvicorn

from franchise_auth.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "franchise_auth.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug and not settings.is_production,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
