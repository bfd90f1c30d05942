"""Planner - recurrence expansion engine for tasks and events"""
