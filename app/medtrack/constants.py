"""
Central constants for the MedTrack registries.
"""
from __future__ import annotations

# Initial statuses assigned on creation. Status columns are otherwise open strings.
DEVICE_STATUS_ACTIVE = "active"
TECHNICIAN_STATUS_ACTIVE = "active"

# Service order lifecycle: scheduled -> in-progress -> completed
SERVICE_STATUS_SCHEDULED = "scheduled"
SERVICE_STATUS_IN_PROGRESS = "in-progress"
SERVICE_STATUS_COMPLETED = "completed"

# Names of the per-registry "last id" counters
COUNTER_DEVICE = "device"
COUNTER_TECHNICIAN = "technician"
COUNTER_SERVICE = "service"

CALLER_HEADER = "X-Caller-Identity"
LEDGER_HEIGHT_HEADER = "X-Ledger-Height"
