"""Service orchestrating one oracle query from question to settled answer."""

import asyncio
import logging
from typing import Dict, List, Optional

from ..models.verification import ErrorKind, VerificationResult
from ..ports.source_provider import SourceProvider
from .confidence import ConfidenceScorer
from .domain_handlers import DomainHandler, RedditHandler, SportsHandler
from .payment_gate import PaymentGate, PaymentSession
from .query_log import QueryLog
from .safety_governor import Admission, SafetyGovernor

logger = logging.getLogger(__name__)


class UnknownDomainError(KeyError):
    """No oracle is configured for the requested domain."""


class OracleService:
    """Domain-agnostic oracle facade.

    Per query: payment verify, safety check, parse, provider query,
    confidence score, log, payment settle.
    """

    def __init__(
        self,
        governor: SafetyGovernor,
        query_log: QueryLog,
        providers: Dict[str, SourceProvider],
        payments: Optional[PaymentGate] = None,
        scorer: Optional[ConfidenceScorer] = None,
        handlers: Optional[Dict[str, DomainHandler]] = None,
    ):
        """Initialize the service.

        Args:
            governor: Safety rails
            query_log: Outcome log feeding the safety rails
            providers: Source adapter per domain
            payments: Payment gate, required for ``answer``
            scorer: Confidence scorer
            handlers: Parsing and validation per domain
        """
        self._governor = governor
        self._log = query_log
        self._providers = dict(providers)
        self._payments = payments
        self._scorer = scorer or ConfidenceScorer()
        if handlers is None:
            handlers = {h.domain: h for h in (SportsHandler(), RedditHandler())}
        self._handlers = dict(handlers)
        logger.info(f"🔧 OracleService initialized for domains: {', '.join(self.domains)}")

    @property
    def domains(self) -> List[str]:
        """Domains that have both a handler and a provider."""
        return [d for d in self._handlers if d in self._providers]

    @property
    def governor(self) -> SafetyGovernor:
        return self._governor

    @property
    def query_log(self) -> QueryLog:
        return self._log

    def _handler(self, domain: str) -> DomainHandler:
        if domain not in self.domains:
            raise UnknownDomainError(domain)
        return self._handlers[domain]

    async def answer(
        self,
        domain: str,
        question: str,
        session: PaymentSession,
    ) -> VerificationResult:
        """Answer a paid question.

        The payment is verified before any provider work and settled once a
        result exists, including a safety-rail rejection. A settlement failure
        is attached to the result, which is returned regardless.

        Raises:
            PaymentError: If verification rejects the request
            UnknownDomainError: If the domain is not configured
        """
        if self._payments is None:
            raise RuntimeError("OracleService has no payment gate configured")
        self._handler(domain)

        await self._payments.verify(session)
        logger.info(f"[{domain}] Processing paid query: \"{question}\"")

        result = await self.ask(domain, question)

        outcome = await self._payments.settle(session)
        return result.with_payment(outcome)

    async def ask(self, domain: str, question: str) -> VerificationResult:
        """Answer a question without payment.

        Raises:
            UnknownDomainError: If the domain is not configured
        """
        handler = self._handler(domain)

        admission = await asyncio.to_thread(self._governor.check, domain)
        if not admission.allowed:
            return VerificationResult.failure(
                domain,
                admission.reason,
                message=admission.message,
                safety_triggered=True,
            )

        try:
            return await self._run(handler, question, admission)
        finally:
            await asyncio.to_thread(self._governor.release, admission)

    async def _run(
        self,
        handler: DomainHandler,
        question: str,
        admission: Admission,
    ) -> VerificationResult:
        domain = handler.domain
        query = handler.parse(question)

        problem = handler.validate(query)
        if problem is not None:
            result = VerificationResult.failure(
                domain,
                problem.error_kind,
                suggestion=problem.suggestion,
                query=query,
            )
            await asyncio.to_thread(self._log.record, result, admission)
            return result

        provider = self._providers[domain]
        await self._governor.pace(domain)
        try:
            response = await provider.query(query)
        except Exception as e:
            logger.error(f"{domain} oracle error: {type(e).__name__}: {e}", exc_info=True)
            failure = VerificationResult.failure(
                domain,
                ErrorKind.INTERNAL_ERROR,
                message=str(e),
                query=query,
                sources=[handler.source],
            )
            await asyncio.to_thread(self._log.record, failure, admission)
            raise

        if not response.success:
            logger.info(f"[{domain}] upstream error: {response.error_kind.value}")
            result = VerificationResult.failure(
                domain,
                response.error_kind,
                message=response.message,
                query=query,
                sources=[response.source],
            )
        else:
            result = VerificationResult(
                success=True,
                confidence=self._scorer.score(response.payload, query),
                domain=domain,
                payload=response.payload,
                query=query,
                sources=[response.source],
            )

        await asyncio.to_thread(self._log.record, result, admission)
        return result
