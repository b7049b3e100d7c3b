"""Alias table mapping common team nicknames to canonical franchise names."""

from typing import Dict

TEAM_ALIASES: Dict[str, str] = {
    # NBA
    "lakers": "Los Angeles Lakers",
    "la lakers": "Los Angeles Lakers",
    "clippers": "Los Angeles Clippers",
    "celtics": "Boston Celtics",
    "warriors": "Golden State Warriors",
    "dubs": "Golden State Warriors",
    "knicks": "New York Knicks",
    "nets": "Brooklyn Nets",
    "bulls": "Chicago Bulls",
    "heat": "Miami Heat",
    "sixers": "Philadelphia 76ers",
    "bucks": "Milwaukee Bucks",
    "nuggets": "Denver Nuggets",
    "suns": "Phoenix Suns",
    "mavs": "Dallas Mavericks",
    "mavericks": "Dallas Mavericks",
    "spurs": "San Antonio Spurs",
    "cavs": "Cleveland Cavaliers",
    "cavaliers": "Cleveland Cavaliers",
    "thunder": "Oklahoma City Thunder",
    "raptors": "Toronto Raptors",
    "timberwolves": "Minnesota Timberwolves",
    "wolves": "Minnesota Timberwolves",
    # NFL
    "niners": "San Francisco 49ers",
    "chiefs": "Kansas City Chiefs",
    "eagles": "Philadelphia Eagles",
    "cowboys": "Dallas Cowboys",
    "packers": "Green Bay Packers",
    "pats": "New England Patriots",
    "patriots": "New England Patriots",
    "bills": "Buffalo Bills",
    "ravens": "Baltimore Ravens",
    "bucs": "Tampa Bay Buccaneers",
    # MLB
    "yankees": "New York Yankees",
    "dodgers": "Los Angeles Dodgers",
    "red sox": "Boston Red Sox",
    "cubs": "Chicago Cubs",
    "mets": "New York Mets",
    # NHL
    "habs": "Montreal Canadiens",
    "leafs": "Toronto Maple Leafs",
    "bruins": "Boston Bruins",
    "rangers": "New York Rangers",
    # Football
    "man utd": "Manchester United",
    "man united": "Manchester United",
    "man city": "Manchester City",
    "barca": "Barcelona",
    "real": "Real Madrid",
    "gunners": "Arsenal",
}


def normalize_team(name: str) -> str:
    """Canonical franchise name for ``name``; unknown names pass through."""
    return TEAM_ALIASES.get(name.strip().lower(), name.strip())
