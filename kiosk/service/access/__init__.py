"""
The access layer reads and writes the kiosk tables. Writes accept the
``using_db`` connection of an open transaction so the managers can
group several of them into one atomic unit.
"""
