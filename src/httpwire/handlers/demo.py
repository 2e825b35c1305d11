"""
Demo application served by `python -m httpwire`.

    GET /          → 200 "Cows will fly!"
    anything else  → 404 "Not Found"

Any supported method is accepted on "/"; the body, if any, is ignored.
"""

import logging

from ..http import ParsedRequest, ResponseSpec, ok, not_found


logger = logging.getLogger(__name__)

INDEX_BODY = "Cows will fly!"


def demo_handler(request: ParsedRequest) -> ResponseSpec:
    if request.path != "/":
        logger.debug(f"No route for {request.method.value} {request.path}")
        return not_found()

    return ok(INDEX_BODY, content_type="text/plain")
