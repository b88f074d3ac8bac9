import argparse
import json
import sys

from complaint_response_app.config import load_app_config
from complaint_response_app.integrations.complaints_api import (
    ComplaintsApiClient,
    ComplaintsApiError,
)
from complaint_response_app.utils.logging import init_logging


def _serve(args) -> int:
    import uvicorn

    uvicorn.run(
        "complaint_response_app.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


def _list_responses(args) -> int:
    cfg = load_app_config()
    client = ComplaintsApiClient(cfg.api_base, timeout_s=cfg.api_timeout_s)
    try:
        records = client.get_saved_responses(cookie=args.cookie)
    except ComplaintsApiError as exc:
        print(json.dumps({"error": str(exc), "status": exc.status}))
        return 1
    payload = [r.model_dump(mode="json") for r in records]
    print(json.dumps(payload, ensure_ascii=False, indent=2 if args.pretty else None))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(prog="complaint-desk")
    sub = parser.add_subparsers(dest="command")

    serve_parser = sub.add_parser("serve", help="Run the web front-end")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    list_parser = sub.add_parser("list-responses", help="Print saved responses as JSON")
    list_parser.add_argument(
        "--cookie", default=None, help="Cookie header to forward to the complaints API"
    )
    list_parser.add_argument("--pretty", action="store_true")

    args = parser.parse_args(argv)

    init_logging()
    if args.command == "serve":
        return _serve(args)
    if args.command == "list-responses":
        return _list_responses(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
