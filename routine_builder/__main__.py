from __future__ import annotations

import os

import uvicorn


def main() -> None:
    """Serve the routine builder API; HOST and PORT override the bind address."""
    uvicorn.run(
        "routine_builder.app:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
