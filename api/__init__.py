"""
REST API layer for the PDF Flashcard Generator
"""
