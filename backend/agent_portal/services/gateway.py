"""Data store gateway.

All reads and writes of the aggregation services go through one gateway
instance created by the process entry point. Each unit of work runs in its
own session on a bounded worker pool, so independent queries can be
issued together and awaited separately:

    totals = gateway.submit(_totals, agent_id, entity=f"agent {agent_id}")
    paid = gateway.submit(_paid, agent_id, entity=f"agent {agent_id}")
    gateway.result(totals), gateway.result(paid)

Storage errors and timeouts surface as ``DataUnavailable``.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.requests import Request

from agent_portal.core.config import settings
from agent_portal.core.errors import DataUnavailable

logger = logging.getLogger(__name__)


class DataStoreGateway:
    def __init__(
        self,
        session_factory: sessionmaker,
        query_timeout: float = None,
        max_workers: int = None,
        use_db_rollups: bool = None,
    ):
        self.session_factory = session_factory
        self.query_timeout = query_timeout if query_timeout is not None else settings.QUERY_TIMEOUT_SECONDS
        self.use_db_rollups = use_db_rollups if use_db_rollups is not None else settings.USE_DB_ROLLUPS
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.DATASTORE_MAX_WORKERS,
            thread_name_prefix="datastore",
        )

    # ── Unit-of-work execution ───────────────────────────────────────

    def _run(self, fn: Callable[..., Any], args: tuple, entity: Optional[str], commit: bool) -> Any:
        session: Session = self.session_factory()
        try:
            value = fn(session, *args)
            if commit:
                session.commit()
            return value
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Data store error for {entity or fn.__name__}: {e}")
            raise DataUnavailable(entity=entity) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def submit(self, fn: Callable[..., Any], *args, entity: Optional[str] = None) -> Future:
        """Issue a read without waiting for it."""
        return self._executor.submit(self._run, fn, args, entity, False)

    def result(self, future: Future, entity: Optional[str] = None) -> Any:
        """Wait for a submitted unit of work, bounded by the query timeout."""
        try:
            return future.result(timeout=self.query_timeout)
        except FutureTimeout as e:
            future.cancel()
            logger.error(f"Data store timeout after {self.query_timeout}s for {entity or 'query'}")
            raise DataUnavailable("Data store timed out, please retry", entity=entity) from e

    def call(self, fn: Callable[..., Any], *args, entity: Optional[str] = None) -> Any:
        return self.result(self.submit(fn, *args, entity=entity), entity=entity)

    def write(self, fn: Callable[..., Any], *args, entity: Optional[str] = None) -> Any:
        """
        Run a unit of work and commit it.

        A timeout only stops the wait: the worker may still commit after the
        caller has received DataUnavailable. Writes sent through here must be
        safe to retry.
        """
        future = self._executor.submit(self._run, fn, args, entity, True)
        return self.result(future, entity=entity)

    # ── Server-side rollups ──────────────────────────────────────────

    def rpc(self, function_name: str, params: dict, entity: Optional[str] = None):
        """Call a set-returning SQL function, e.g. get_agent_summary(:agent_id)."""
        placeholders = ", ".join(f":{name}" for name in params)
        statement = text(f"SELECT * FROM {function_name}({placeholders})")

        def _call(session: Session):
            return session.execute(statement, params).mappings().first()

        return self.call(_call, entity=entity or function_name)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


def get_gateway(request: Request) -> DataStoreGateway:
    """FastAPI dependency: the gateway the app lifespan put on ``app.state``."""
    return request.app.state.gateway
