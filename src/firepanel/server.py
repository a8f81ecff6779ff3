#!/usr/bin/env python3
"""
Fire Panel Server

Starts the panel API with:
- Suppression control (arm/power via two-factor auth, actuator override)
- Emergency lighting control (self-test, power, simulated mains signal)
- Audit log and notification history

Credentials are read from FIREPANEL_PRIMARY_SECRET / FIREPANEL_SECONDARY_CODE.

Usage:
    python -m firepanel.server
    # or
    uvicorn firepanel.api.app:create_app --factory --host 0.0.0.0 --port 8080
"""

import argparse
import logging

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Fire Panel Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8080, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"""
╔═══════════════════════════════════════════════════════════╗
║           Fire Panel                                      ║
║                                                           ║
║   API:     http://{args.host}:{args.port}/docs                       ║
║                                                           ║
║   Features:                                               ║
║   - Suppression Arm/Power (two-factor authorization)      ║
║   - Actuator Override & Reserve Tracking                  ║
║   - Emergency Lighting Self-Test & Mains Simulation       ║
╚═══════════════════════════════════════════════════════════╝
""")

    uvicorn.run(
        "firepanel.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
