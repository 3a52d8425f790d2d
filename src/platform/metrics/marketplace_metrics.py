from prometheus_client import Counter, Histogram


class MarketplaceMetrics:
    """
    Resale marketplace core metrics

    Tracks order lifecycle, allocation contention, payment reconciliation and
    the background jobs that sweep expired orders and release seller earnings
    """

    def __init__(self):
        # ========== Orders ==========
        self.orders_created = Counter(
            'resale_orders_created_total',
            'Orders created',
            ['currency'],
        )

        self.order_creation_failures = Counter(
            'resale_order_creation_failures_total',
            'Order creation attempts rejected',
            ['reason'],  # insufficient_inventory/pending_order_exists/validation/...
        )

        self.order_transitions = Counter(
            'resale_order_transitions_total',
            'Order status transitions',
            ['to_status'],
        )

        # ========== Allocation ==========
        self.allocation_retries = Counter(
            'resale_allocation_retries_total',
            'Allocation attempts lost to a concurrent reservation',
        )

        # ========== Reconciliation ==========
        self.reconciliation_outcomes = Counter(
            'resale_reconciliation_outcomes_total',
            'Provider signals processed by outcome',
            ['source', 'outcome'],  # source: webhook/poll
        )

        # ========== Jobs ==========
        self.job_runs = Counter(
            'resale_job_runs_total',
            'Background job runs',
            ['job', 'result'],  # result: success/failure
        )

        self.job_duration = Histogram(
            'resale_job_duration_seconds',
            'Background job run duration',
            ['job'],
            buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
        )

        # ========== Earnings ==========
        self.earnings_hold_results = Counter(
            'resale_earnings_hold_results_total',
            'Seller earnings leaving the hold period',
            ['result'],  # released/retained
        )

    # ========== Helper Methods ==========

    def record_order_transition(self, *, to_status: str) -> None:
        self.order_transitions.labels(to_status=to_status).inc()

    def record_reconciliation(self, *, source: str, outcome: str) -> None:
        self.reconciliation_outcomes.labels(source=source, outcome=outcome).inc()

    def record_job_run(self, *, job: str, success: bool, duration: float) -> None:
        self.job_runs.labels(job=job, result='success' if success else 'failure').inc()
        self.job_duration.labels(job=job).observe(duration)

    def record_hold_results(self, *, released: int, retained: int) -> None:
        if released:
            self.earnings_hold_results.labels(result='released').inc(released)
        if retained:
            self.earnings_hold_results.labels(result='retained').inc(retained)


# Global metrics instance
metrics = MarketplaceMetrics()
