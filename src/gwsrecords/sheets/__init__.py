"""
Classes to map records onto Google Sheets ranges
"""

# bounds carry a 16 bit unsigned row number
GoogleSheetsMaxRowIndex = 65535
