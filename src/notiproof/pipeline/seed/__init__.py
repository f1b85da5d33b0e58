from notiproof.pipeline.seed.loader import SeedData, load_seed_dir, validate_seed

__all__ = ["SeedData", "load_seed_dir", "validate_seed"]
