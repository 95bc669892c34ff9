from datetime import date, datetime
from types import SimpleNamespace

from labdesk.analytics import (
    category_distribution, dashboard_summary, doctor_performance, monthly_rollup,
    rollup_by_month, summary_metrics, trailing_months
)

NOW = datetime(2024, 3, 15, 12, 0)


def invoice(id, doctor_id, final_amount, created_at=NOW):
    return SimpleNamespace(id=id, doctor_id=doctor_id, final_amount=final_amount, created_at=created_at)


def test_trailing_months_cross_year_boundary():
    labels = trailing_months(NOW, 12)
    assert len(labels) == 12
    assert labels[0] == 'Apr 2023'
    assert labels[-1] == 'Mar 2024'


def test_rollup_has_every_month_even_without_records():
    rows = monthly_rollup(now=NOW)
    assert [row['month'] for row in rows] == trailing_months(NOW, 12)
    assert all(row['revenue'] == 0 and row['tests'] == 0 for row in rows)


def test_rollup_sums_into_matching_month():
    invoices = [
        invoice(1, None, 1000, datetime(2024, 3, 1)),
        invoice(2, None, 500, datetime(2024, 3, 20)),
        invoice(3, None, 700, datetime(2024, 1, 5)),
    ]
    expenses = [SimpleNamespace(amount=300, date=date(2024, 3, 2))]
    patients = [SimpleNamespace(created_at=datetime(2024, 1, 10))]
    reports = [SimpleNamespace(created_at=datetime(2024, 3, 3), results=[1, 2, 3])]

    rows = {row['month']: row for row in monthly_rollup(invoices, expenses, patients, reports, now=NOW)}

    assert rows['Mar 2024'] == {
        'month': 'Mar 2024', 'revenue': 1500, 'expenses': 300,
        'patients': 0, 'tests': 3, 'profit': 1200,
    }
    assert rows['Jan 2024']['revenue'] == 700
    assert rows['Jan 2024']['patients'] == 1


def test_rollup_drops_records_outside_window():
    buckets = rollup_by_month(
        [invoice(1, None, 999, datetime(2023, 3, 31))],
        lambda i: i.created_at, lambda i: i.final_amount, now=NOW
    )
    assert sum(buckets.values()) == 0


def test_category_distribution_skips_unknown_tests():
    tests = [
        SimpleNamespace(id=1, category='Hematology'),
        SimpleNamespace(id=2, category='Biochemistry'),
    ]
    reports = [
        SimpleNamespace(results=[SimpleNamespace(test_id=1), SimpleNamespace(test_id=2)]),
        SimpleNamespace(results=[SimpleNamespace(test_id=2), SimpleNamespace(test_id=99)]),
    ]

    distribution = {row['name']: row for row in category_distribution(reports, tests)}

    assert distribution['Hematology']['value'] == 1
    assert distribution['Biochemistry']['value'] == 2
    assert sum(row['value'] for row in distribution.values()) == 3


def test_category_distribution_empty():
    assert category_distribution([], []) == []


def test_doctor_performance_ranks_by_revenue():
    doctors = [SimpleNamespace(id=1, name='A'), SimpleNamespace(id=2, name='B')]
    invoices = [invoice(1, 1, 100), invoice(2, 2, 300), invoice(3, 1, 50)]

    ranking = doctor_performance(invoices, doctors)

    assert [row['name'] for row in ranking] == ['B', 'A']
    assert ranking[1] == {'doctor_id': 1, 'name': 'A', 'referrals': 2, 'revenue': 150}


def test_doctor_performance_skips_missing_doctors():
    doctors = [SimpleNamespace(id=1, name='A')]
    invoices = [invoice(1, 1, 100), invoice(2, 7, 5000), invoice(3, None, 10)]

    ranking = doctor_performance(invoices, doctors)

    assert [row['doctor_id'] for row in ranking] == [1]


def test_doctor_performance_limit():
    doctors = [SimpleNamespace(id=i, name=f'Dr {i}') for i in range(1, 16)]
    invoices = [invoice(i, i, i * 10) for i in range(1, 16)]

    ranking = doctor_performance(invoices, doctors)

    assert len(ranking) == 10
    assert ranking[0]['doctor_id'] == 15
    assert ranking[-1]['doctor_id'] == 6


def test_doctor_performance_ties_keep_first_seen_order():
    doctors = [SimpleNamespace(id=i, name=f'Dr {i}') for i in (1, 2, 3)]
    invoices = [invoice(1, 3, 100), invoice(2, 1, 100), invoice(3, 2, 100)]

    ranking = doctor_performance(invoices, doctors)

    assert [row['doctor_id'] for row in ranking] == [3, 1, 2]


def test_summary_metrics():
    metrics = summary_metrics(
        [invoice(1, None, 1000), invoice(2, None, -200)],
        [SimpleNamespace(amount=300)],
        [SimpleNamespace(results=[1, 2])]
    )
    assert metrics == {'total_revenue': 800, 'total_expenses': 300, 'net_profit': 500, 'total_tests': 2}


def test_dashboard_summary_today_figures():
    patients = [SimpleNamespace(created_at=datetime(2024, 3, 15, 8)),
                SimpleNamespace(created_at=datetime(2024, 3, 14, 23))]
    invoices = [invoice(1, None, 400, datetime(2024, 3, 15, 9)),
                invoice(2, None, 600, datetime(2024, 3, 10))]
    reports = [SimpleNamespace(status='pending'), SimpleNamespace(status='verified')]
    stock = [SimpleNamespace(current_stock=5, reorder_level=10),
             SimpleNamespace(current_stock=10, reorder_level=10),
             SimpleNamespace(current_stock=50, reorder_level=10)]

    summary = dashboard_summary(patients, invoices, reports, stock, list(range(15)), now=NOW)

    assert summary['total_patients'] == 2
    assert summary['today_patients'] == 1
    assert summary['total_revenue'] == 1000
    assert summary['today_revenue'] == 400
    assert summary['pending_reports'] == 1
    assert summary['low_stock_items'] == 2
    assert summary['recent_activities'] == list(range(5, 15))
