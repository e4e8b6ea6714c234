"""Domain logic: codecs, hashing, signing, account variants and orchestration."""
