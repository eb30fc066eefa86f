"""
Ядро Kiosk Update Module
"""
