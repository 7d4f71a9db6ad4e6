"""Shared helpers for the Polo bridge client"""
