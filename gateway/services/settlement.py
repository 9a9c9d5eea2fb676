"""
Asenkron settlement simülasyonu.

- SettlementPolicy: gecikme ve sonuç (sabit / rastgele, enjekte edilen RNG ile).
- settle_payment: tek transaction'da ödeme terminal duruma, başarılıysa sipariş paid'e geçer.
  Koşullu UPDATE (status = processing) sayesinde aynı ödeme için ikinci çağrı hiçbir şey yapmaz.
- SettlementWorker: ödeme id'si ile anahtarlanan zamanlayıcı + thread pool.
  Bekleyen işler pending_settlements tablosunda da durur; açılışta recover() ile tekrar zamanlanır.
  Hata alan iş üstel geri çekilmeyle (üst sınırlı) yeniden denenir.
"""
import heapq
import itertools
import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

from sqlalchemy import delete, update
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from gateway.core.clock import SystemClock
from gateway.core.config import Settings
from gateway.models import Order, Payment, PendingSettlement
from gateway.models.order import ORDER_CREATED, ORDER_PAID
from gateway.models.payment import METHOD_UPI, PAYMENT_FAILED, PAYMENT_PROCESSING, PAYMENT_SUCCESS

log = logging.getLogger("gateway.settlement")

FAILURE_CODE = "PAYMENT_FAILED"
FAILURE_DESCRIPTION = "Payment processing failed due to bank rejection"
# Aynı siparişin başka bir ödemesi önce başarılı olduysa
ORDER_ALREADY_PAID_DESCRIPTION = "Order already paid"

RETRY_BASE_DELAY = timedelta(seconds=1)
RETRY_MAX_DELAY = timedelta(seconds=60)


class SettlementPolicy:
    """Gecikme ve sonuç kararı. fixed_delay_ms / forced_outcome verilirse deterministik çalışır."""

    def __init__(
        self,
        rng: random.Random | None = None,
        fixed_delay_ms: int | None = None,
        forced_outcome: bool | None = None,
        min_delay_ms: int = 5000,
        max_delay_ms: int = 10000,
        upi_success_rate: float = 0.90,
        card_success_rate: float = 0.95,
    ):
        if min_delay_ms > max_delay_ms:
            raise ValueError("min_delay_ms must not exceed max_delay_ms")
        self.rng = rng or random.Random()
        self.fixed_delay_ms = fixed_delay_ms
        self.forced_outcome = forced_outcome
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self.upi_success_rate = upi_success_rate
        self.card_success_rate = card_success_rate
        # random.Random birden fazla iş parçacığından çağrılıyor
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, s: Settings) -> "SettlementPolicy":
        return cls(
            rng=random.Random(s.settlement_seed),
            fixed_delay_ms=s.test_processing_delay if s.test_mode else None,
            forced_outcome=s.test_payment_success if s.test_mode else None,
            min_delay_ms=s.settlement_min_delay_ms,
            max_delay_ms=s.settlement_max_delay_ms,
            upi_success_rate=s.upi_success_rate,
            card_success_rate=s.card_success_rate,
        )

    def delay(self) -> timedelta:
        if self.fixed_delay_ms is not None:
            return timedelta(milliseconds=max(self.fixed_delay_ms, 0))
        with self._lock:
            ms = self.rng.randint(self.min_delay_ms, self.max_delay_ms)
        return timedelta(milliseconds=ms)

    def success_rate(self, method: str) -> float:
        return self.upi_success_rate if method == METHOD_UPI else self.card_success_rate

    def outcome(self, method: str) -> bool:
        if self.forced_outcome is not None:
            return self.forced_outcome
        rate = self.success_rate(method)
        with self._lock:
            return self.rng.random() < rate


def settle_payment(engine: Engine, payment_id: str, succeeded: bool, now: datetime) -> bool:
    """
    Ödemeyi terminal duruma geçirir. Ödeme güncellemesi, sipariş güncellemesi ve
    bekleyen işaretin silinmesi tek transaction'dır.
    Bir sipariş en fazla bir başarılı ödeme alır: sipariş zaten paid ise başarılı sonuç
    failed (ORDER_ALREADY_PAID_DESCRIPTION) olarak yazılır.
    Ödeme bulunamazsa veya zaten terminal ise False döner ve hiçbir şey yazılmaz.
    """
    with Session(engine) as db:
        payment = db.get(Payment, payment_id)
        if payment is None:
            log.warning("Settlement skipped, payment not found: payment_id=%s", payment_id)
            return False
        order_id = payment.order_id
        conn = db.connection()
        if succeeded:
            # Önce sipariş: created -> paid yalnızca bir kez eşleşir
            won = conn.execute(
                update(Order)
                .where(Order.id == order_id, Order.status == ORDER_CREATED)
                .values(status=ORDER_PAID, updated_at=now)
            ).rowcount == 1
        else:
            won = False
        if won:
            values = {"status": PAYMENT_SUCCESS, "error_code": None, "error_description": None}
        else:
            values = {
                "status": PAYMENT_FAILED,
                "error_code": FAILURE_CODE,
                "error_description": ORDER_ALREADY_PAID_DESCRIPTION if succeeded else FAILURE_DESCRIPTION,
            }
        result = conn.execute(
            update(Payment)
            .where(Payment.id == payment_id, Payment.status == PAYMENT_PROCESSING)
            .values(updated_at=now, **values)
        )
        if result.rowcount != 1:
            # Çift tetikleme: ödeme zaten terminal. Sipariş güncellemesi geri alınır,
            # varsa eski işaret temizlenir, ödemeye dokunulmaz.
            db.rollback()
            conn = db.connection()
            conn.execute(delete(PendingSettlement).where(PendingSettlement.payment_id == payment_id))
            db.commit()
            log.info("Settlement already applied, skipping: payment_id=%s", payment_id)
            return False
        conn.execute(delete(PendingSettlement).where(PendingSettlement.payment_id == payment_id))
        db.commit()
    log.info(
        "Payment settled: payment_id=%s order_id=%s status=%s",
        payment_id,
        order_id,
        values["status"],
    )
    return True


class SettlementWorker:
    """
    Ödeme başına bir kez çalışan gecikmeli settlement.
    Zamanlayıcı iş parçacığı vadesi gelen işleri thread pool'a verir; farklı ödemeler birbirini beklemez.
    Aynı ödeme id'si ikinci kez zamanlanamaz.
    """

    def __init__(
        self,
        engine: Engine,
        policy: SettlementPolicy,
        clock=None,
        max_workers: int = 4,
        poll_interval: float = 0.5,
        retry_base_delay: timedelta = RETRY_BASE_DELAY,
        retry_max_delay: timedelta = RETRY_MAX_DELAY,
    ):
        self.engine = engine
        self.policy = policy
        self.clock = clock or SystemClock()
        self._max_workers = max(1, max_workers)
        self._poll_interval = poll_interval
        self._heap: list[tuple[datetime, int, str, str]] = []
        # payment_id -> sıra no; zamanlanmış veya çalışan her iş burada
        self._pending: dict[str, int] = {}
        self._running: set[str] = set()
        # payment_id -> başarısız deneme sayısı (geri çekilme için)
        self._attempts: dict[str, int] = {}
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._executor: ThreadPoolExecutor | None = None
        self._thread: threading.Thread | None = None
        self._stopping = False

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._cond:
            if self._thread is not None:
                return
            self._stopping = False
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="settlement"
            )
            self._thread = threading.Thread(
                target=self._dispatch_loop, name="settlement-scheduler", daemon=True
            )
            self._thread.start()
        log.info("Settlement worker started: workers=%s", self._max_workers)

    def next_due_at(self) -> datetime:
        return self.clock.now() + self.policy.delay()

    def schedule(self, payment_id: str, method: str, due_at: datetime) -> bool:
        with self._cond:
            if payment_id in self._pending:
                log.info("Settlement already scheduled: payment_id=%s", payment_id)
                return False
            seq = next(self._seq)
            self._pending[payment_id] = seq
            heapq.heappush(self._heap, (due_at, seq, payment_id, method))
            self._cond.notify_all()
        log.info("Settlement scheduled: payment_id=%s method=%s due_at=%s", payment_id, method, due_at.isoformat())
        return True

    def cancel(self, payment_id: str) -> bool:
        """Henüz başlamamış işi bellekten kaldırır. Kalıcı işaret silinmez; recover() tekrar zamanlar."""
        with self._cond:
            if payment_id in self._running or payment_id not in self._pending:
                return False
            del self._pending[payment_id]
            self._cond.notify_all()
        log.info("Settlement cancelled: payment_id=%s", payment_id)
        return True

    def is_scheduled(self, payment_id: str) -> bool:
        with self._cond:
            return payment_id in self._pending

    def pending_count(self) -> int:
        with self._cond:
            return len(self._pending)

    def drain(self, timeout: float | None = None) -> bool:
        """Zamanlanmış tüm işler bitene kadar bekler. Süre dolarsa False."""
        with self._cond:
            return self._cond.wait_for(lambda: not self._pending, timeout)

    def recover(self) -> int:
        """Kalıcı bekleyen işaretleri (önceki süreçten kalan) tekrar zamanlar."""
        with Session(self.engine) as db:
            markers = list(db.exec(select(PendingSettlement).order_by(PendingSettlement.due_at)).all())
        recovered = 0
        for marker in markers:
            if self.schedule(marker.payment_id, marker.method, marker.due_at):
                recovered += 1
        if recovered:
            log.info("Recovered pending settlements: count=%s", recovered)
        return recovered

    def stop(self, drain: bool = False, timeout: float | None = None) -> None:
        if drain:
            self.drain(timeout)
        with self._cond:
            if self._thread is None:
                return
            self._stopping = True
            self._cond.notify_all()
            thread, executor = self._thread, self._executor
            self._thread = None
            self._executor = None
        thread.join(timeout=5)
        executor.shutdown(wait=True, cancel_futures=True)
        with self._cond:
            left = len(self._pending)
            self._heap.clear()
            self._pending.clear()
            self._running.clear()
            self._attempts.clear()
            self._cond.notify_all()
        log.info("Settlement worker stopped: unfinished=%s", left)

    def _dispatch_loop(self) -> None:
        with self._cond:
            while not self._stopping:
                if not self._heap:
                    self._cond.wait(self._poll_interval)
                    continue
                due_at, seq, payment_id, method = self._heap[0]
                if self._pending.get(payment_id) != seq:
                    # iptal edilmiş
                    heapq.heappop(self._heap)
                    continue
                remaining = (due_at - self.clock.now()).total_seconds()
                if remaining > 0:
                    self._cond.wait(min(remaining, self._poll_interval))
                    continue
                heapq.heappop(self._heap)
                self._running.add(payment_id)
                self._executor.submit(self._run, payment_id, method)

    def _retry_delay(self, attempt: int) -> timedelta:
        return min(self._retry_base_delay * (2 ** (attempt - 1)), self._retry_max_delay)

    def _run(self, payment_id: str, method: str) -> None:
        retry_at = None
        try:
            succeeded = self.policy.outcome(method)
            settle_payment(self.engine, payment_id, succeeded, self.clock.now())
        except Exception:
            # Geçici hata (kilitli veritabanı, kopan bağlantı): iş geri çekilmeyle tekrar kuyruğa girer
            with self._cond:
                attempt = self._attempts.get(payment_id, 0) + 1
                self._attempts[payment_id] = attempt
            retry_at = self.clock.now() + self._retry_delay(attempt)
            log.exception(
                "Settlement failed, will retry: payment_id=%s attempt=%s retry_at=%s",
                payment_id,
                attempt,
                retry_at.isoformat(),
            )
        finally:
            with self._cond:
                self._running.discard(payment_id)
                if retry_at is not None and not self._stopping and payment_id in self._pending:
                    seq = next(self._seq)
                    self._pending[payment_id] = seq
                    heapq.heappush(self._heap, (retry_at, seq, payment_id, method))
                else:
                    self._pending.pop(payment_id, None)
                    self._attempts.pop(payment_id, None)
                self._cond.notify_all()


def build_settlement_worker(engine: Engine, s: Settings) -> SettlementWorker:
    return SettlementWorker(
        engine,
        SettlementPolicy.from_settings(s),
        max_workers=s.settlement_workers,
        poll_interval=s.settlement_poll_interval,
    )
