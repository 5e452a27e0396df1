"""
SequenceService -- per-company sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing numbers for voucher numbering (one
    sequence per company and voucher prefix) and for record creation order
    (the ``seq`` tie-break).  Uses a dedicated counter table with row-level
    locking (``SELECT ... FOR UPDATE``) so that concurrent writers never
    receive the same value.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by SqlEntryRepository.

Invariants enforced:
    - The "count existing rows + 1" and "max + 1" patterns are FORBIDDEN.
      The locked counter row is the sole source of truth for the next value.
    - Transactional: an increment is only visible after the caller's
      transaction commits.  Rollback returns the value.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and re-read).
"""

from sqlalchemy import BigInteger, String, UniqueConstraint, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from ledger_kernel.db.base import Base
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row is one named sequence of one company.
    """

    __tablename__ = "sequence_counters"

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_sequence_company_name"),
    )

    company_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # Sequence name (e.g., "voucher:JV", "record")
    name: Mapped[str] = mapped_column(String(50), nullable=False)

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Contract:
        Accepts a company and a sequence name and returns the next
        strictly increasing integer.  The increment is transactional.

    Guarantees:
        - ``SELECT ... FOR UPDATE`` serializes concurrent allocations for
          the same (company, sequence).
        - Sequences of different companies are independent.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    RECORD = "record"

    def __init__(self, session: Session):
        self._session = session

    @staticmethod
    def voucher_sequence(prefix: str) -> str:
        return f"voucher:{prefix}"

    def _locked_counter(self, company_id: str, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(
                SequenceCounter.company_id == company_id,
                SequenceCounter.name == sequence_name,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, company_id: str, sequence_name: str) -> int:
        """
        Get the next value for a company's named sequence.

        Preconditions:
            - The caller is within an active database transaction.

        Postconditions:
            - Returns an integer > 0 strictly greater than any value
              previously returned for this (company, sequence).
            - The counter row stays locked until the transaction completes.
        """
        counter = self._locked_counter(company_id, sequence_name)

        if counter is None:
            # First use.  Another transaction may create the row at the same
            # time, so insert inside a savepoint.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(
                    company_id=company_id, name=sequence_name, current_value=1
                )
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={
                        "company_id": company_id,
                        "sequence_name": sequence_name,
                        "value": 1,
                    },
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"company_id": company_id, "sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(company_id, sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={
                "company_id": company_id,
                "sequence_name": sequence_name,
                "value": counter.current_value,
            },
        )
        return counter.current_value

    def current_value(self, company_id: str, sequence_name: str) -> int | None:
        """Current value without incrementing, or None if never used."""
        counter = self._session.execute(
            select(SequenceCounter).where(
                SequenceCounter.company_id == company_id,
                SequenceCounter.name == sequence_name,
            )
        ).scalar_one_or_none()

        return counter.current_value if counter else None
