"""Conflict detection for lab bookings.

Two bookings conflict when they share a normalised resource key and date,
the existing one is not cancelled, and their half-open ``[start, end)``
intervals overlap. Touching boundaries (one ends as the other starts) are
not a conflict.
"""
from typing import Iterable, Optional

from approvals.models.lab_booking import BookingStatus


def normalize_resource_key(key: str) -> str:
    """Resource keys are free text (an instrument or activity name)."""
    return (key or "").strip().casefold()


def intervals_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Half-open overlap on zero-padded ``HH:MM`` strings."""
    return start_a < end_b and end_a > start_b


def conflicts_with(existing, candidate) -> bool:
    if existing.status == BookingStatus.cancelled:
        return False
    if existing.booking_date != candidate.booking_date:
        return False
    if normalize_resource_key(existing.resource_key) != normalize_resource_key(candidate.resource_key):
        return False
    return intervals_overlap(candidate.start_time, candidate.end_time, existing.start_time, existing.end_time)


def find_overlap(existing: Iterable, candidate) -> Optional[str]:
    """Return the id of the first booking ``candidate`` collides with, if any."""
    match = first_conflict(existing, candidate)
    return match.request_id if match is not None else None


def first_conflict(existing: Iterable, candidate):
    for booking in existing:
        if getattr(booking, "request_id", None) is not None and booking.request_id == getattr(candidate, "request_id", None):
            continue
        if conflicts_with(booking, candidate):
            return booking
    return None
