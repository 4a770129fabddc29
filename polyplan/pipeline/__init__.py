"""Pipeline stages: land input, configuration, optimizer.

  land       parse and validate the parcel, user zones and terrain zones
  config     immutable sizing / strategy rules for one run
  optimizer  buildable area → sizes → orientation → passes → labels
"""
