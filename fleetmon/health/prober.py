"""Parallel TCP liveness and latency probing."""

import asyncio
import logging
import time
from collections.abc import Sequence

from fleetmon.discovery.models import ServerDescriptor
from fleetmon.health.models import ProbeOutcome, ProbeResult

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 5.0


class TcpProber:
    """Checks reachability of servers by opening a TCP connection to each.

    Probes never raise; every failure is reported as an unreachable result.
    """

    def __init__(self, timeout: float = DEFAULT_PROBE_TIMEOUT) -> None:
        self._timeout = timeout

    async def probe_one(self, server: ServerDescriptor, timeout: float | None = None) -> ProbeResult:
        """Open and immediately close a TCP connection to one server.

        Args:
            server: Server to probe
            timeout: Overrides the prober's default timeout

        Returns:
            ProbeResult with latency if the connection was established
        """
        limit = self._timeout if timeout is None else timeout
        start = time.perf_counter()
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(server.host, server.port),
                timeout=limit,
            )
        except TimeoutError:
            return ProbeResult(
                server_name=server.name,
                is_reachable=False,
                latency_ms=None,
                outcome=ProbeOutcome.TIMEOUT,
                message=f"TCP connection timed out after {limit:g}s",
            )
        except ConnectionRefusedError:
            return ProbeResult(
                server_name=server.name,
                is_reachable=False,
                latency_ms=None,
                outcome=ProbeOutcome.REFUSED,
                message="TCP connection refused",
            )
        except OSError as e:
            return ProbeResult(
                server_name=server.name,
                is_reachable=False,
                latency_ms=None,
                outcome=ProbeOutcome.ERROR,
                message=f"TCP connection failed: {e}",
            )

        latency_ms = (time.perf_counter() - start) * 1000

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass  # Peer reset after accept; the connect already succeeded

        return ProbeResult(
            server_name=server.name,
            is_reachable=True,
            latency_ms=latency_ms,
            outcome=ProbeOutcome.CONNECTED,
        )

    async def probe(
        self,
        servers: Sequence[ServerDescriptor],
        timeout: float | None = None,
    ) -> list[ProbeResult]:
        """Probe all servers concurrently.

        Returns:
            One ProbeResult per server, in input order
        """
        results = await asyncio.gather(
            *[self.probe_one(server, timeout) for server in servers],
            return_exceptions=True,
        )

        probe_results: list[ProbeResult] = []
        for server, result in zip(servers, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                # Bad host/port values and the like
                logger.warning(f"Probe of {server.name} raised {type(result).__name__}: {result}")
                probe_results.append(
                    ProbeResult(
                        server_name=server.name,
                        is_reachable=False,
                        latency_ms=None,
                        outcome=ProbeOutcome.ERROR,
                        message=f"Probe error: {result}",
                    )
                )
            else:
                probe_results.append(result)

        return probe_results
