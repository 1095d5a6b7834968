"""
HTTP client for the remote solver.

The solver is a single JSON-over-HTTP endpoint: POST a SolveRequest payload,
get back {"schedule": {"<index>": "<employee>", ...}}. Timeouts are set per
request; there is no automatic retry.

Reference: Requests documentation, "Quickstart — More complicated POST requests"
https://requests.readthedocs.io/en/latest/user/quickstart/
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from roster_board.errors import TransportError
from roster_board.solver.result import SolveRequest, SolveResponse

logger = logging.getLogger(__name__)


class SolverClient:
    def __init__(self, url: str, timeout: float = 30.0,
                 session: Optional[requests.Session] = None) -> None:
        if not url:
            raise ValueError("Solver URL is not configured")
        self.url     = url
        self.timeout = timeout
        self._http   = session or requests.Session()

    def solve(self, request: SolveRequest) -> SolveResponse:
        payload = request.to_payload()
        logger.info("Solving for %d worker(s) via %s", len(request.workers), self.url)
        try:
            resp = self._http.post(self.url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise TransportError(f"Solver request failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"Solver returned invalid JSON: {e}") from e

        result = SolveResponse.from_payload(data)
        logger.debug("Solver returned %d cell(s)", len(result.schedule))
        return result
