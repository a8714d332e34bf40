#!/usr/bin/env python3
# scripts/summarize_duplicates.py
# Aggregate `flowhub dedupe` CSV reports: duplicate groups and rejection reasons.

import argparse
import glob
import os

import pandas as pd

REQUIRED = ["file", "valid", "error_kind", "digest", "duplicate_of"]


def load_csv(path: str) -> pd.DataFrame:
    """Load a dedupe report and check the expected columns."""
    df = pd.read_csv(path, keep_default_na=False)
    for col in REQUIRED:
        if col not in df.columns:
            raise ValueError(f"{path} is missing required column '{col}'")
    df["valid"] = df["valid"].astype(str).str.lower() == "true"
    df["report"] = os.path.basename(path)
    return df


def duplicate_groups(df: pd.DataFrame) -> pd.DataFrame:
    """One row per fingerprint shared by more than one file."""
    valid = df[df["valid"] & (df["digest"] != "")]
    grouped = valid.groupby("digest")["file"].agg(["count", lambda s: ", ".join(sorted(s))])
    grouped.columns = ["files", "members"]
    grouped = grouped[grouped["files"] > 1].sort_values("files", ascending=False)
    return grouped.reset_index()


def rejection_counts(df: pd.DataFrame) -> pd.DataFrame:
    invalid = df[~df["valid"]]
    if invalid.empty:
        return pd.DataFrame(columns=["error_kind", "count"])
    return invalid.groupby("error_kind").size().reset_index(name="count")


def main():
    parser = argparse.ArgumentParser(description="Summarize flowhub dedupe reports.")
    parser.add_argument(
        "--glob",
        type=str,
        default="reports/*.csv",
        help="Glob for dedupe CSV files (default: reports/*.csv)",
    )
    parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Optional CSV path for the duplicate groups",
    )
    args = parser.parse_args()

    files = sorted(glob.glob(args.glob))
    if not files:
        print(f"[warn] No CSV files match {args.glob}")
        return

    df = pd.concat([load_csv(f) for f in files], ignore_index=True)
    print(f"[info] {len(df)} rows from {len(files)} report(s)")

    groups = duplicate_groups(df)
    print("\n===== Duplicate groups =====\n")
    print(groups.to_string(index=False) if not groups.empty else "<none>")

    rejected = rejection_counts(df)
    print("\n===== Rejections by kind =====\n")
    print(rejected.to_string(index=False) if not rejected.empty else "<none>")

    if args.out:
        groups.to_csv(args.out, index=False)
        print(f"\nSaved -> {args.out}")


if __name__ == "__main__":
    main()
