# ORM models package: importing a module registers its table on Base.metadata
