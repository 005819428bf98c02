"""Tabular export of extracted torrents"""
import json
from typing import Any, Dict, List

import pandas as pd

from .models import Torrent

COLUMNS = [
    'site', 'id', 'title', 'sub_title', 'url', 'link', 'time', 'size', 'author',
    'category', 'category_link', 'seeders', 'leechers', 'completed', 'comments',
    'tags', 'progress', 'status',
]


def _flatten(torrent: Torrent) -> Dict[str, Any]:
    row = torrent.to_dict()
    category = row.pop('category') or {}
    row['category'] = category.get('name')
    row['category_link'] = category.get('link')
    row['tags'] = json.dumps([t['name'] for t in row['tags']], ensure_ascii=False)
    row.pop('extra', None)
    return row


def torrents_to_dataframe(torrents: List[Torrent]) -> pd.DataFrame:
    """Convert torrents to a DataFrame, one row per (site, id)"""
    if not torrents:
        return pd.DataFrame(columns=COLUMNS)

    df = pd.DataFrame([_flatten(t) for t in torrents])
    df = df.drop_duplicates(subset=['site', 'id'])
    df = df.replace({'': None})
    return df[[c for c in COLUMNS if c in df.columns]].reset_index(drop=True)
