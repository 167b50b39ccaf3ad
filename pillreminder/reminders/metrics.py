from prometheus_client import Counter


pill_regimens_created_total = Counter(
    "pill_regimens_created_total",
    "Total pill regimens created",
)

pill_regimens_renewed_total = Counter(
    "pill_regimens_renewed_total",
    "Total pill regimens renewed (old regimen replaced)",
)

dosage_jobs_scheduled_total = Counter(
    "pillreminder_dosage_jobs_scheduled_total",
    "Total recurring dosage jobs registered with the scheduler",
)

dosage_jobs_unscheduled_total = Counter(
    "pillreminder_dosage_jobs_unscheduled_total",
    "Total recurring dosage jobs removed from the scheduler",
)

scheduler_scans_total = Counter(
    "pillreminder_scheduler_scans_total",
    "Total scheduler scan cycles",
)

scheduler_fired_total = Counter(
    "pillreminder_scheduler_fired_total",
    "Total dosage jobs fired by the scheduler",
)

reminders_published_total = Counter(
    "pillreminder_reminders_published_total",
    "Total pill reminders published to the output queue",
)

reminders_skipped_total = Counter(
    "pillreminder_reminders_skipped_total",
    "Total pill reminders skipped because the dosage was already handled today",
)
