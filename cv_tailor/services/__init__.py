"""Task services"""
