from tennis_stats.generator.dataset import DatasetGenerator, GenerationSummary, partition_matches

__all__ = ['DatasetGenerator', 'GenerationSummary', 'partition_matches']
