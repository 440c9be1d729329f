"""Ballot — single-administrator governed voting workflow."""
