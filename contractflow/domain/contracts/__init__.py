"""Contracts domain - lifecycle engine, store and HTTP router"""
