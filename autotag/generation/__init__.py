"""Tag generation pipeline: filtering, hierarchy and orchestration."""
