"""View state and key handling for browsing the block database."""