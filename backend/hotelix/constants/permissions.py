"""Central enum-like definitions to avoid typos in permission/service strings.
Permissions are derived from the user's role at login and carried in the JWT ``perms`` claim.
"""
from __future__ import annotations
from typing import List, Dict

SERVICE_ACTIONS = {
    'INT': ['READ', 'CREATE', 'UPDATE', 'STATUS', 'ASSIGN'],
    'ZONE': ['READ', 'MANAGE'],
    'TECH': ['READ'],
    'STATS': ['READ', 'MANAGE'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

# TECHNICIEN holds INT.UPDATE / INT.STATUS but policy.can_modify_intervention
# narrows them to interventions assigned to the caller.
ROLE_PERMISSIONS: Dict[str, List[str]] = {
    'MANAGER': ['*'],
    'STAFF': ['INT.READ', 'INT.CREATE', 'ZONE.READ', 'TECH.READ', 'STATS.READ'],
    'TECHNICIEN': ['INT.READ', 'INT.CREATE', 'INT.UPDATE', 'INT.STATUS', 'ZONE.READ', 'STATS.READ'],
}


def permissions_for_role(role: str) -> List[str]:
    codes = ROLE_PERMISSIONS.get(role, [])
    if '*' in codes:
        return sorted(ALL_PERMISSION_CODES)
    return sorted(codes)
