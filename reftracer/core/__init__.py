"""reftracer core - trace map model, match records and the engine facade."""
