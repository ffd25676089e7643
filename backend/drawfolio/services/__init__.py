"""Drawfolio - Engine Services"""
