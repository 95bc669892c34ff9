"""
Aggregations behind the analytics and dashboard views

All functions work on in-memory collections handed in by the caller.
Records that reference a doctor or test which no longer exists are skipped,
never reported as errors.
"""
import logging
from datetime import date, datetime

logger = logging.getLogger(__name__)


def _month_label(value):
    return value.strftime('%b %Y')


def trailing_months(now=None, months=12):
    """Labels of the trailing calendar months ending with now's month, oldest first"""
    now = now or datetime.utcnow()
    labels = []
    for offset in range(months - 1, -1, -1):
        year, month_index = divmod(now.year * 12 + now.month - 1 - offset, 12)
        labels.append(_month_label(date(year, month_index + 1, 1)))
    return labels


def rollup_by_month(records, date_of, value_of, now=None, months=12):
    """Sum value_of(record) into pre-seeded month buckets

    Every bucket of the window is present even when no record falls into it.
    Records dated outside the window are dropped.
    """
    buckets = {label: 0 for label in trailing_months(now, months)}
    for record in records:
        recorded_at = date_of(record)
        if recorded_at is None:
            continue
        label = _month_label(recorded_at)
        if label in buckets:
            buckets[label] += value_of(record)
    return buckets


def monthly_rollup(invoices=(), expenses=(), patients=(), reports=(), now=None, months=12):
    """Revenue, expenses, new patients and tests performed per month"""
    revenue = rollup_by_month(invoices, lambda i: i.created_at, lambda i: i.final_amount, now, months)
    spent = rollup_by_month(expenses, lambda e: e.date, lambda e: e.amount, now, months)
    registered = rollup_by_month(patients, lambda p: p.created_at, lambda p: 1, now, months)
    performed = rollup_by_month(reports, lambda r: r.created_at, lambda r: len(r.results), now, months)

    return [
        {
            'month': month,
            'revenue': revenue[month],
            'expenses': spent[month],
            'patients': registered[month],
            'tests': performed[month],
            'profit': revenue[month] - spent[month],
        }
        for month in revenue
    ]


def category_distribution(reports, tests):
    """Count report results per test category"""
    catalog = {test.id: test for test in tests}
    counts = {}
    for report in reports:
        for result in report.results:
            test = catalog.get(result.test_id)
            if test is None:
                logger.debug(f"Skipping result for unknown test {result.test_id}")
                continue
            counts[test.category] = counts.get(test.category, 0) + 1

    total = sum(counts.values())
    return [
        {'name': category, 'value': count, 'share': round(count * 100.0 / total, 1)}
        for category, count in counts.items()
    ]


def doctor_performance(invoices, doctors, limit=10):
    """Rank referring doctors by revenue, highest first

    Equal revenues keep the order in which the doctors first appear in
    invoices.
    """
    directory = {doctor.id: doctor for doctor in doctors}
    stats = {}
    for invoice in invoices:
        doctor = directory.get(invoice.doctor_id)
        if doctor is None:
            logger.debug(f"Skipping invoice {invoice.id}: doctor {invoice.doctor_id} not found")
            continue
        entry = stats.setdefault(doctor.id, {
            'doctor_id': doctor.id,
            'name': doctor.name,
            'referrals': 0,
            'revenue': 0,
        })
        entry['referrals'] += 1
        entry['revenue'] += invoice.final_amount

    ranked = sorted(stats.values(), key=lambda entry: entry['revenue'], reverse=True)
    return ranked[:limit]


def summary_metrics(invoices=(), expenses=(), reports=()):
    """Headline figures for the analytics view"""
    total_revenue = sum((invoice.final_amount for invoice in invoices), 0)
    total_expenses = sum((expense.amount for expense in expenses), 0)
    return {
        'total_revenue': total_revenue,
        'total_expenses': total_expenses,
        'net_profit': total_revenue - total_expenses,
        'total_tests': sum(len(report.results) for report in reports),
    }


def dashboard_summary(patients=(), invoices=(), reports=(), stock_items=(), audit_logs=(), now=None):
    now = now or datetime.utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

    return {
        'total_patients': len(patients),
        'today_patients': sum(1 for p in patients if p.created_at and p.created_at >= start_of_day),
        'total_revenue': sum((i.final_amount for i in invoices), 0),
        'today_revenue': sum(
            (i.final_amount for i in invoices if i.created_at and i.created_at >= start_of_day), 0
        ),
        'pending_reports': sum(1 for r in reports if r.status == 'pending'),
        'low_stock_items': sum(1 for s in stock_items if s.current_stock <= s.reorder_level),
        'recent_activities': list(audit_logs)[-10:],
    }
