"""Repository Migration Tool

Replays a recorded migration plan that moves repositories, teams and CI
configuration from Bitbucket to GitHub and CircleCI.
"""

__version__ = '0.1.0'
__author__ = 'Repository Migration Team'
__email__ = 'team@example.com'

from .cli.main import main

__all__ = ['main']
