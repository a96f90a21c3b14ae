"""Flatten per-type feature lists into one uniform feature table."""

import logging
from collections.abc import Mapping

import pandas as pd

logger = logging.getLogger(__name__)

FEATURE_COLUMNS = ["start", "end", "strand", "type", "gene", "pseudo", "product"]


def extract_features(features: Mapping) -> pd.DataFrame:
    """Concatenate typed feature collections into a single DataFrame.

    Args:
        features: {feature_type: records} where records is a DataFrame or a
            list of dicts with at least start/end/strand.  Records without a
            ``type`` take the mapping key as their type.

    Returns:
        DataFrame with exactly ``FEATURE_COLUMNS`` in that order.  Columns a
        feature type does not carry are null; extra columns are dropped.
    """
    frames = []
    for ftype, records in features.items():
        df = records.copy() if isinstance(records, pd.DataFrame) else pd.DataFrame(list(records))
        if df.empty:
            continue
        if "type" not in df.columns:
            df["type"] = ftype
        else:
            df["type"] = df["type"].where(df["type"].notna(), ftype)
        for col in FEATURE_COLUMNS:
            if col not in df.columns:
                df[col] = None
        frames.append(df[FEATURE_COLUMNS])
        logger.debug("Extracted %d %s features", len(df), ftype)

    if not frames:
        return pd.DataFrame(columns=FEATURE_COLUMNS)
    info = pd.concat(frames, ignore_index=True)
    logger.info("Extracted %d features of %d types", len(info), len(frames))
    return info
