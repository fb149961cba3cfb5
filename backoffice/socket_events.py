# backoffice/socket_events.py

import functools

from flask import current_app
from flask_login import current_user
from flask_socketio import emit, disconnect
from redis.exceptions import RedisError

from backoffice.extensions import socketio


def authenticated_only(f):
    @functools.wraps(f)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            disconnect()
            return False
        return f(*args, **kwargs)
    return wrapped


def best_effort(f):
    """Dashboards poll anyway; a failed push must not fail the request."""
    @functools.wraps(f)
    def wrapped(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except RedisError as e:
            current_app.logger.error(f"Redis error in socket event: {str(e)}")
        except Exception as e:
            current_app.logger.error(f"Unexpected error in socket event: {str(e)}")
        return None
    return wrapped


@socketio.on('connect')
@authenticated_only
def handle_connect():
    emit('status', {'msg': f'{current_user.username} connected'})
    current_app.logger.info(f'Client connected: {current_user.username}')
    return True


@socketio.on('disconnect')
def handle_disconnect():
    if current_user.is_authenticated:
        current_app.logger.info(f'Client disconnected: {current_user.username}')


@best_effort
def notify_inventory_update(item_id, action, data):
    """
    Push an inventory change to connected dashboards.
    Args:
        item_id: Changed item's ID
        action: 'movement' or a transfer status ('pending', 'in_transit', ...)
        data: Change details
    """
    user = current_user.username if current_user and current_user.is_authenticated else 'System'
    socketio.emit('inventory_update', {
        'item_id': item_id,
        'action': action,
        'data': data,
        'user': user
    })


@best_effort
def notify_stock_alert(item, location, quantity):
    """
    Push a low/out-of-stock alert for one location.
    Args:
        item: InventoryItem instance
        location: Location instance
        quantity: quantity now held there
    """
    level = item.check_stock_level(quantity)
    if level not in ('low', 'out'):
        return None
    socketio.emit('stock_alert', {
        'item_id': item.id,
        'item_name': item.name,
        'location_code': location.code,
        'level': level,
        'quantity': quantity,
        'minimum': item.minimum_stock
    })
    return level
