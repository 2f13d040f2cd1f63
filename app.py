# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

#!/usr/bin/env python3
"""
Call to the Faithful - Reminder service for parish Masses and the Angelus
"""
import logging
import signal
import sys
import threading
import uuid

from flask import Flask, jsonify, redirect, request

import config
from cal_ops.resolver import include_daily
from gateway.base import ReminderGateway
from gateway.memory import InMemoryReminderGateway
from models import InvalidRuleError, Schedule
from presets import SchedulePreset, build_schedule, matching_preset, preset_for
from storage import JsonFileScheduleStore, ScheduleStore
from sync import AuthorizationError, ReminderSynchronizer, SyncError, SyncScheduler
from utils.logger import configure_logging
from utils.timezone import format_local_time, get_local_time, parse_iso_instant

configure_logging()
logger = logging.getLogger(__name__)

app = Flask(__name__)


# Security Headers Middleware
@app.after_request
def add_security_headers(response):
    """Add security headers to all responses"""
    response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains; preload'
    response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    response.headers['Server'] = 'Call to the Faithful'
    return response


# HTTPS Enforcement Middleware
@app.before_request
def enforce_https():
    """Enforce HTTPS for all requests"""
    if request.headers.get('X-Forwarded-Proto') == 'http':
        url = request.url.replace('http://', 'https://', 1)
        return redirect(url, code=301)


# Global components - initialized on first request
synchronizer = None
scheduler = None
angelus_enabled = config.ANGELUS_ENABLED

_components_initialized = False
_init_lock = threading.Lock()


def build_gateway() -> ReminderGateway:
    """REST gateway when a URL is configured, otherwise reminders stay in memory"""
    if config.REMINDER_GATEWAY_URL:
        from gateway.rest import RestReminderGateway
        logger.info(f"🔗 Using REST reminder gateway at {config.REMINDER_GATEWAY_URL}")
        return RestReminderGateway()

    logger.warning("⚠️ REMINDER_GATEWAY_URL not set - reminders are kept in memory only")
    return InMemoryReminderGateway()


def initialize_components(gateway: ReminderGateway = None, store: ScheduleStore = None,
                          start_scheduler: bool = None, force: bool = True):
    """Build the synchronizer and scheduler, replacing any existing ones"""
    global synchronizer, scheduler, angelus_enabled, _components_initialized

    with _init_lock:
        if _components_initialized and not force:
            return
        if scheduler is not None:
            scheduler.stop()

        angelus_enabled = config.ANGELUS_ENABLED
        synchronizer = ReminderSynchronizer(
            gateway or build_gateway(),
            store or JsonFileScheduleStore(),
            enabled=include_daily(angelus_enabled),
        )
        logger.info("✅ Reminder synchronizer initialized")

        scheduler = SyncScheduler(synchronizer)
        if config.SCHEDULER_ENABLED if start_scheduler is None else start_scheduler:
            scheduler.start()

        _components_initialized = True


def ensure_components_initialized():
    """Initialize components on first request to avoid startup delays"""
    if not _components_initialized:
        initialize_components(force=False)


def _json_body():
    return request.get_json(silent=True)


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _requested_instant():
    """The ?at= query parameter as an aware datetime, or now"""
    at = request.args.get('at')
    if not at:
        return get_local_time()
    return parse_iso_instant(at)


def _schedule_payload(schedule: Schedule):
    preset = matching_preset(schedule)
    payload = schedule.to_dict()
    payload['preset'] = preset.value if preset else None
    return payload


def _apply_schedule(schedule: Schedule):
    """Persist and reschedule; the response carries both the schedule and the report"""
    try:
        report = synchronizer.update_schedule(schedule)
    except SyncError as e:
        logger.error(f"❌ Reschedule failed: {e}")
        return jsonify({"error": str(e), "schedule": _schedule_payload(schedule)}), 502

    return jsonify({"schedule": _schedule_payload(schedule), "sync": report.to_dict()})


@app.route('/health')
def health_check():
    """Lightweight health check"""
    return jsonify({
        "status": "healthy",
        "timestamp": get_local_time().isoformat(),
        "service": "call-to-the-faithful",
        "version": "1.0.0"
    }), 200


@app.route('/status')
def get_status():
    """Get current system status"""
    ensure_components_initialized()

    status = synchronizer.get_status()
    occurrence = synchronizer.current_next()
    status.update({
        "scheduler_running": scheduler.is_running() if scheduler else False,
        "angelus_enabled": angelus_enabled,
        "timezone": config.TIMEZONE,
        "current_time": format_local_time(get_local_time()),
        "next_service": occurrence.to_dict() if occurrence else None,
    })
    return jsonify(status)


@app.route('/schedule', methods=['GET'])
def get_schedule():
    ensure_components_initialized()
    return jsonify(_schedule_payload(synchronizer.schedule))


@app.route('/schedule', methods=['PUT'])
def put_schedule():
    """Replace the schedule; rules sent without an id are treated as new"""
    ensure_components_initialized()

    data = _json_body()
    if not isinstance(data, dict):
        return _error("Request body must be a JSON object", 400)

    rules = data.get('rules', [])
    if isinstance(rules, list):
        for item in rules:
            if isinstance(item, dict) and not item.get('id'):
                item['id'] = str(uuid.uuid4())

    try:
        schedule = Schedule.from_dict(data)
    except (InvalidRuleError, TypeError) as e:
        return _error(str(e), 400)

    return _apply_schedule(schedule)


@app.route('/schedule', methods=['DELETE'])
def delete_schedule():
    ensure_components_initialized()

    try:
        report = synchronizer.clear_schedule()
    except SyncError as e:
        return _error(str(e), 502)

    return jsonify({"schedule": _schedule_payload(Schedule.empty()), "sync": report.to_dict()})


@app.route('/presets')
def list_presets():
    return jsonify([
        {
            "name": preset.value,
            "description": preset.description,
            "rules": [rule.to_dict() for rule in preset.masses()],
        }
        for preset in SchedulePreset
    ])


@app.route('/presets/<name>', methods=['POST'])
def apply_preset(name):
    """Replace the schedule with a preset, plus the Angelus unless excluded"""
    ensure_components_initialized()

    try:
        preset = preset_for(name)
    except KeyError:
        return _error(f"Unknown preset: {name}", 404)

    data = _json_body()
    if not isinstance(data, dict):
        data = {}
    owner_name = data.get('ownerName') or synchronizer.schedule.owner_name or config.DEFAULT_OWNER_NAME
    include_angelus = data.get('includeAngelus', True)
    if not isinstance(owner_name, str) or not isinstance(include_angelus, bool):
        return _error("ownerName must be a string and includeAngelus a boolean", 400)

    logger.info(f"📋 Applying {preset.title} preset for '{owner_name}'")
    return _apply_schedule(build_schedule(preset, owner_name, include_angelus))


@app.route('/settings/angelus', methods=['PUT'])
def set_angelus():
    """Turn the daily Angelus reminders on or off"""
    global angelus_enabled
    ensure_components_initialized()

    data = _json_body()
    if not isinstance(data, dict) or not isinstance(data.get('enabled'), bool):
        return _error("Body must be {\"enabled\": true|false}", 400)

    angelus_enabled = data['enabled']
    try:
        report = synchronizer.set_enabled(include_daily(angelus_enabled))
    except SyncError as e:
        return _error(str(e), 502)

    return jsonify({"angelus_enabled": angelus_enabled, "sync": report.to_dict()})


@app.route('/next')
def next_service():
    """Next service after ?at= (default now) and when a display should refresh"""
    ensure_components_initialized()

    try:
        at = _requested_instant()
    except ValueError as e:
        return _error(str(e), 400)

    occurrence = synchronizer.current_next(at)
    return jsonify({
        "next": occurrence.to_dict() if occurrence else None,
        "refresh_at": synchronizer.next_refresh_time(at).isoformat(),
    })


@app.route('/upcoming')
def upcoming_services():
    ensure_components_initialized()

    try:
        at = _requested_instant()
        limit = int(request.args.get('limit', config.UPCOMING_LIMIT))
    except ValueError as e:
        return _error(str(e), 400)
    if limit < 0:
        return _error("limit must not be negative", 400)

    occurrences = synchronizer.upcoming(at, limit) if limit else []
    return jsonify({"upcoming": [occurrence.to_dict() for occurrence in occurrences]})


@app.route('/sync', methods=['POST'])
def trigger_sync():
    """Reschedule every reminder for the current schedule"""
    ensure_components_initialized()

    try:
        report = synchronizer.reschedule_all(synchronizer.schedule)
    except SyncError as e:
        return _error(str(e), 502)

    return jsonify(report.to_dict())


@app.route('/sync/preview', methods=['POST'])
def preview_sync():
    """What a sync would remove and replace, without changing anything"""
    ensure_components_initialized()

    try:
        preview = synchronizer.preview()
    except SyncError as e:
        return _error(str(e), 502)

    return jsonify({
        "success": True,
        "preview": {
            "reminders_to_remove": preview['to_remove'],
            "reminders_to_replace": preview['to_replace'],
            "new_reminders": preview['new'],
            "remove_count": len(preview['to_remove']),
            "replace_count": len(preview['to_replace']),
        }
    })


@app.route('/authorization', methods=['POST'])
def request_authorization():
    ensure_components_initialized()

    try:
        granted = synchronizer.request_authorization()
    except AuthorizationError as e:
        return _error(str(e), 502)

    return jsonify({"authorized": granted})


@app.route('/history')
def get_history():
    """Get sync history"""
    ensure_components_initialized()

    stats = synchronizer.history.get_statistics()
    stats['recent_failures'] = synchronizer.history.get_recent_failures()
    return jsonify(stats)


@app.route('/metrics')
def get_metrics():
    """Get system metrics"""
    ensure_components_initialized()

    payload = {
        "metrics": synchronizer.metrics.get_metrics_summary(),
        "history": synchronizer.history.get_statistics(),
        "timezone": config.TIMEZONE,
        "report_time": format_local_time(get_local_time()),
    }

    breaker = getattr(synchronizer.gateway, 'circuit_breaker', None)
    if breaker is not None:
        payload["circuit_breaker"] = breaker.get_statistics()

    return jsonify(payload)


@app.route('/validate-sync', methods=['POST'])
def validate_sync():
    """Validate current reminder state against the schedule"""
    ensure_components_initialized()

    try:
        validation_report = synchronizer.validate()
    except SyncError as e:
        return _error(str(e), 502)

    validation_report['report_time_display'] = format_local_time(get_local_time())
    return jsonify(validation_report)


def _handle_sigterm(signum, frame):
    logger.warning(f"Received signal {signum}, shutting down...")
    if scheduler is not None:
        scheduler.stop()
    sys.exit(0)


if __name__ == '__main__':
    signal.signal(signal.SIGTERM, _handle_sigterm)
    signal.signal(signal.SIGINT, _handle_sigterm)

    ensure_components_initialized()
    logger.info(f"Starting reminder service on port {config.PORT}")
    app.run(host='0.0.0.0', port=config.PORT)
