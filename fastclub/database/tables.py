"""
Identificatori delle tabelle Supabase
"""
from enum import Enum


class TableName(str, Enum):
    """Insieme chiuso delle tabelle usate dal portale"""
    profiles = "profiles"
    members = "members"
    prefecture_events = "prefecture_events"
    commissions = "commissions"
    presidency_projects = "presidency_projects"
    transactions = "transactions"
    goals = "goals"
    milestones = "milestones"
    presidency_notes = "presidency_notes"
    section_requests = "section_requests"
    member_permissions = "member_permissions"
    vip_guests = "vip_guests"
    district_events = "district_events"
    club_invites = "club_invites"
    club_members = "club_members"
    waiting_list = "waiting_list"
    admin_activity_log = "admin_activity_log"
    data_snapshots = "data_snapshots"
    member_fees = "member_fees"
    position_history = "position_history"
