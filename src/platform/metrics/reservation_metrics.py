from prometheus_client import Counter, Histogram


class ReservationMetrics:
    """
    Reservation Engine Core Metrics Collector

    Tracks reservation outcomes, waitlist redistribution, expiries,
    transaction contention and the deferred task worker.
    """

    def __init__(self):
        # ========== Reservation Business Metrics ==========
        self.reservation_requests = Counter(
            'reservation_requests_total',
            'Total processed reservation attempts',
            ['result'],  # result: reserved/waitlisted/failed
        )

        self.reservation_duration = Histogram(
            'reservation_duration_seconds',
            'Reservation transaction processing time',
            ['result'],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0],
        )

        self.purchases_completed = Counter(
            'reservation_purchases_completed_total',
            'Reservations converted into tickets',
        )

        self.tickets_issued = Counter(
            'reservation_tickets_issued_total',
            'Tickets materialized at purchase completion',
        )

        self.reservations_expired = Counter(
            'reservation_expired_total',
            'Pending reservations released by the expiry handler',
        )

        # ========== Waitlist Metrics ==========
        self.waitlist_notifications = Counter(
            'waitlist_notifications_total',
            'Waitlist entries notified with earmarked capacity',
        )

        self.waitlist_expirations = Counter(
            'waitlist_notification_expired_total',
            'Waitlist claim windows that lapsed',
        )

        self.waitlist_claims = Counter(
            'waitlist_claims_total',
            'Waitlist entries converted into reservations',
        )

        # ========== Infrastructure Metrics ==========
        self.transaction_retries = Counter(
            'transaction_retries_total',
            'Transaction attempts replayed after a conflict',
            ['operation'],
        )

        self.notifications_sent = Counter(
            'notifications_total',
            'Notification delivery attempts',
            ['result'],  # result: sent/failed
        )

        self.deferred_tasks = Counter(
            'deferred_tasks_total',
            'Deferred tasks processed by the worker',
            ['task_name', 'result'],  # result: done/retry/failed
        )

    # ========== Helper Methods ==========

    def record_reservation(self, *, result: str, duration: float):
        self.reservation_requests.labels(result=result).inc()
        self.reservation_duration.labels(result=result).observe(duration)

    def record_purchase(self, *, ticket_count: int):
        self.purchases_completed.inc()
        self.tickets_issued.inc(ticket_count)

    def record_reservation_expired(self):
        self.reservations_expired.inc()

    def record_waitlist_notified(self, *, count: int = 1):
        self.waitlist_notifications.inc(count)

    def record_waitlist_expired(self):
        self.waitlist_expirations.inc()

    def record_waitlist_claimed(self):
        self.waitlist_claims.inc()

    def record_transaction_retry(self, *, operation: str):
        self.transaction_retries.labels(operation=operation).inc()

    def record_notification(self, *, result: str):
        self.notifications_sent.labels(result=result).inc()

    def record_deferred_task(self, *, task_name: str, result: str):
        self.deferred_tasks.labels(task_name=task_name, result=result).inc()


# Global metrics instance
reservation_metrics = ReservationMetrics()
