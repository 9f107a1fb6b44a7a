# Vulture whitelist - names used through protocols, callbacks and public API
# that vulture incorrectly reports as unused.
#
# Run vulture with: poetry run vulture tempstore/ vulture_whitelist.py --min-confidence 80

# Context manager __exit__(exc_type, exc_val, exc_tb)
exc_type  # unused variable
exc_val  # unused variable
exc_tb  # unused variable

# SeekableStream protocol members and the matching public methods
synchronize  # unused method
write_string  # unused method
seek_to_end  # unused method

# Byte container API of InMemoryFile
reserve_capacity  # unused method
reset_bytes  # unused method
with_capacity  # unused method
with_count  # unused method

# Public helpers exported from tempstore/__init__.py
temporary_file  # unused function
remove_at_exit  # unused property
