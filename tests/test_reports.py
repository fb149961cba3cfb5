from datetime import date, datetime

from backoffice.inventory import transfers
from backoffice.reports import views
from backoffice.time_tracking import tracker

from conftest import get_item, get_location, get_user


def test_low_stock_report(ctx):
    report = views.low_stock_report()

    # Chairs: 10 >= 5; coffee: 2 < 3
    assert [row['name'] for row in report] == ['Coffee Beans']
    assert report[0]['available'] == 2
    assert report[0]['shortfall'] == 1
    assert report[0]['level'] == 'low'


def test_low_stock_counts_in_transit_as_unavailable(ctx):
    manager = get_user('manager')
    transfer = transfers.create_transfer(
        get_item(), get_location('store-room-1'), get_location('branch-A'), 6, manager
    )
    transfers.approve(transfer.id, manager)

    names = [row['name'] for row in views.low_stock_report()]
    assert 'Office Chair' in names


def test_category_totals(ctx):
    totals = {row['category']: row for row in views.category_totals()}

    assert set(totals) == {'fixture', 'moveable', 'consumable'}
    assert totals['moveable'] == {
        'category': 'moveable', 'itemCount': 1, 'quantity': 10, 'value': 500.0
    }
    assert totals['consumable']['value'] == 25.0
    assert totals['fixture']['itemCount'] == 0


def test_attendance_summary(ctx):
    staff = get_user('staff')
    customer = get_user('customer')

    tracker.check_in(staff, now=datetime(2030, 3, 4, 9, 0))
    tracker.check_out(staff, now=datetime(2030, 3, 4, 17, 30))
    tracker.check_in(customer, now=datetime(2030, 3, 4, 10, 0))
    tracker.check_out(customer, now=datetime(2030, 3, 4, 12, 0))
    tracker.check_in(customer, now=datetime(2030, 3, 5, 10, 0))

    summary = views.attendance_summary(date(2030, 3, 1), date(2030, 3, 31))

    assert [row['username'] for row in summary] == ['staff', 'customer']
    assert summary[0]['totalHours'] == 8.5
    assert summary[1]['totalHours'] == 2.0
    assert summary[1]['daysPresent'] == 1

    assert views.attendance_summary(date(2030, 4, 1), date(2030, 4, 30)) == []


def test_inventory_report(ctx):
    manager = get_user('manager')
    transfer = transfers.create_transfer(
        get_item(), get_location('store-room-1'), get_location('branch-A'), 4, manager
    )
    transfers.approve(transfer.id, manager)

    chair = next(row for row in views.inventory_report() if row['name'] == 'Office Chair')
    assert chair['storeRoom'] == 6
    assert chair['inTransit'] == 4
    assert chair['available'] == 6
    assert chair['total'] == 10
    assert chair['lowStock'] is False
    assert chair['lastMovement'] is not None


def test_reports_require_manager(staff_client, manager_client):
    assert staff_client.get('/reports/low-stock').status_code == 403

    response = manager_client.get('/reports/categories')
    assert response.status_code == 200
    assert len(response.get_json()['data']) == 3

    response = manager_client.get('/reports/attendance?startDate=2030-01-01&endDate=2030-01-31')
    assert response.get_json() == {'success': True, 'data': []}


def test_inventory_export_formats(manager_client):
    response = manager_client.get('/reports/inventory/export/xlsx')
    assert response.status_code == 200
    assert response.mimetype.endswith('spreadsheetml.sheet')
    assert 'attachment; filename=inventory_' in response.headers['Content-Disposition']
    # Streamed bodies hold the request context until consumed
    assert response.data.startswith(b'PK')
    response.close()

    response = manager_client.get('/reports/inventory/export/pdf')
    assert response.status_code == 200
    assert response.data.startswith(b'%PDF')
    response.close()

    response = manager_client.get('/reports/inventory/export/docx')
    assert response.status_code == 200
    assert response.data.startswith(b'PK')
    response.close()

    response = manager_client.get('/reports/inventory/export/txt')
    assert response.status_code == 400
