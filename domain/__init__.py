"""Describes the recipe finder domain. Centres around two repositories and a
catalog client.

What has invariants?

- Favourites: no duplicate ids, insertion order kept, no lost writes when two
  toggles race.
- Preferences: metric unless the user said otherwise.
- The store: nothing reads or writes before it is open.

Everything else is the remote catalog, which is read only and which we fake in
tests. The sessions tie those pieces together for whatever renders them.
"""
