"""Tests for the backorder proxy"""
